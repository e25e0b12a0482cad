"""
Project configuration loader.

Parses satbuild.ini into a BuildSpec and a Toolchain:

    [program]
    name = demo
    sources =
        main.c
        src/util.cpp

    [assets]
    assets/font.bin = font_data

    [image]
    title = Demo

    [directories]
    build = build

    [toolchain]
    install_root = /opt/x-tools/sh2eb-elf

Relative paths resolve against the directory holding the config file.
The SATBUILD_INSTALL_ROOT environment variable overrides the toolchain
install root.
"""

import configparser
import logging
import os
import shlex
from dataclasses import fields
from pathlib import Path
from typing import Dict, List, Optional

from ..build.build_context import AssetSpec, BuildDirs, BuildSpec, ImageMetadata
from ..build.toolchain import DEFAULT_ARCH_PREFIX, Toolchain
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "satbuild.ini"
INSTALL_ROOT_ENV = "SATBUILD_INSTALL_ROOT"

DEFAULT_DIRECTORIES: Dict[str, str] = {
    "build": "build",
    "image": "cd",
    "audio_tracks": "audio-tracks",
    "assets": ".",
    "output": ".",
}


def _split_lines(value: str) -> List[str]:
    """Split a multi-line option into non-empty stripped entries."""
    return [line.strip() for line in value.splitlines() if line.strip()]


def _split_flags(value: str) -> List[str]:
    try:
        return shlex.split(value)
    except ValueError as e:
        raise ConfigurationError(f"Unable to parse flags '{value}': {e}") from e


class ProjectConfig:
    """Parser for a satbuild.ini project file.

    Args:
        config_path: Path to the ini file
        environ: Environment used for overrides (defaults to os.environ)

    Raises:
        ConfigurationError: If the file is missing or cannot be parsed
    """

    def __init__(self, config_path: Path, environ: Optional[Dict[str, str]] = None):
        self.config_path = Path(config_path).absolute()
        self.project_dir = self.config_path.parent
        self.environ = dict(os.environ) if environ is None else environ

        if not self.config_path.exists():
            raise ConfigurationError(f"{CONFIG_FILENAME} not found: {self.config_path}")

        self.parser = configparser.ConfigParser(
            inline_comment_prefixes=(";",),
            interpolation=None,
        )
        # Asset file names are case-sensitive
        self.parser.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            self.parser.read(self.config_path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to parse {self.config_path}: {e}") from e

    def _get(self, section: str, option: str, default: Optional[str] = None) -> Optional[str]:
        if self.parser.has_option(section, option):
            return self.parser.get(section, option).strip()
        return default

    def _resolve(self, value: str) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    def get_program_name(self) -> str:
        name = self._get("program", "name")
        if not name:
            raise ConfigurationError("Empty [program] name (program name)")
        return name

    def get_sources(self) -> List[Path]:
        return [self._resolve(entry) for entry in _split_lines(self._get("program", "sources", "") or "")]

    def get_directories(self) -> BuildDirs:
        values = {}
        for key, default in DEFAULT_DIRECTORIES.items():
            value = self._get("directories", key, default)
            if not value:
                raise ConfigurationError(f"Empty [directories] {key}")
            values[key] = self._resolve(value)
        return BuildDirs(**values)

    def get_assets(self, assets_dir: Path) -> List[AssetSpec]:
        if not self.parser.has_section("assets"):
            return []
        assets = []
        for file_name, symbol in self.parser.items("assets"):
            symbol = symbol.strip()
            if not symbol:
                raise ConfigurationError(f"Invalid builtin asset name for '{file_name}'")
            path = Path(file_name).expanduser()
            if not path.is_absolute():
                path = assets_dir / path
            assets.append(AssetSpec(file=path, symbol=symbol))
        return assets

    def get_image_metadata(self) -> ImageMetadata:
        values = {}
        for item in fields(ImageMetadata):
            value = self._get("image", item.name)
            if value is None:
                continue
            if not value:
                raise ConfigurationError(f"Undefined [image] {item.name}")
            values[item.name] = value
        return ImageMetadata(**values)

    def get_track_header_dependencies(self) -> bool:
        try:
            return self.parser.getboolean("program", "track_header_dependencies", fallback=False)
        except ValueError as e:
            raise ConfigurationError(f"Invalid [program] track_header_dependencies: {e}") from e

    def get_build_spec(self) -> BuildSpec:
        """Build the resolved BuildSpec.

        Raises:
            ConfigurationError: If required fields are missing or empty
        """
        program = self.get_program_name()
        dirs = self.get_directories()
        sources = self.get_sources()
        assets = self.get_assets(dirs.assets)
        if not sources and not assets:
            raise ConfigurationError("No [program] sources defined")

        defsyms = _split_lines(self._get("program", "defsyms", "") or "")
        for entry in defsyms:
            if "=" not in entry:
                raise ConfigurationError(f"Invalid [program] defsyms entry '{entry}' (expected NAME=VALUE)")

        return BuildSpec(
            program=program,
            sources=tuple(sources),
            dirs=dirs,
            assets=tuple(assets),
            image=self.get_image_metadata(),
            cflags=tuple(_split_flags(self._get("program", "cflags", "") or "")),
            cxxflags=tuple(_split_flags(self._get("program", "cxxflags", "") or "")),
            ldflags=tuple(_split_flags(self._get("program", "ldflags", "") or "")),
            defsyms=tuple(defsyms),
            track_header_dependencies=self.get_track_header_dependencies(),
        )

    def get_toolchain(self) -> Toolchain:
        """Build the Toolchain, honouring the install root override.

        Raises:
            ConfigurationError: If the install root is undefined or invalid
        """
        install_root = self.environ.get(INSTALL_ROOT_ENV) or self._get("toolchain", "install_root")
        if not install_root or not install_root.strip():
            raise ConfigurationError(
                f"Undefined toolchain install root: set [toolchain] install_root or {INSTALL_ROOT_ENV}"
            )
        if self.environ.get(INSTALL_ROOT_ENV):
            logger.debug(f"Toolchain install root from {INSTALL_ROOT_ENV}: {install_root}")

        arch_prefix = self._get("toolchain", "prefix", DEFAULT_ARCH_PREFIX) or ""
        program_prefix = self._get("toolchain", "program_prefix", arch_prefix) or arch_prefix
        return Toolchain(
            install_root=Path(install_root.strip()).expanduser(),
            arch_prefix=arch_prefix,
            program_prefix=program_prefix,
        )


def find_config(project_dir: Path, config_path: Optional[Path] = None) -> Path:
    """Locate the project file: an explicit path, else satbuild.ini in project_dir."""
    if config_path is not None:
        return config_path if config_path.is_absolute() else project_dir / config_path
    return project_dir / CONFIG_FILENAME
