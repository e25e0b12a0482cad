"""Build Context - Aggregated build configuration.

This module defines:
- BuildSpec: The resolved project description (program, sources, disc metadata)
- BuildContext: BuildSpec plus toolchain, assembled flags and verbosity

Design:
    The config loader produces a BuildSpec. The CLI wraps it into a
    BuildContext with BuildContext.create(), which resolves flags once.
    BuildContext flows through the pipeline and every stage class and is
    never mutated. Verbosity lives here instead of in process-wide state.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from .build_flags import MASTER_STACK_SYMBOL, SLAVE_STACK_SYMBOL, BuildFlags, defsym_flag
from .classifier import SourceRole, role_for
from .toolchain import Toolchain

IP_BIN_NAME = "IP.BIN"
IMAGE_METADATA_FILES: Tuple[str, ...] = ("ABS.TXT", "BIB.TXT", "CPY.TXT")
IMAGE_METADATA_PLACEHOLDER = "empty"


@dataclass(frozen=True)
class AssetSpec:
    """A binary file converted into a linkable object exposing ``symbol``."""

    file: Path
    symbol: str


@dataclass(frozen=True)
class ImageMetadata:
    """Boot header (IP.BIN) fields and disc layout values.

    Attributes:
        version: Product version (e.g. "V1.000")
        release_date: Release date as YYYYMMDD
        areas: Region compatibility codes (e.g. "JTUBKAEL")
        peripherals: Supported peripheral codes (e.g. "JAMKST")
        title: Game title
        master_stack_addr: Master SH-2 stack pointer
        slave_stack_addr: Slave SH-2 stack pointer
        first_read_addr: Load address of the first-read binary
        first_read_size: Size of the first-read binary (0 lets make-ip decide)
        first_read_bin: File name of the boot binary inside the image directory
    """

    version: str = "V1.000"
    release_date: str = "20241030"
    areas: str = "JTUBKAEL"
    peripherals: str = "JAMKST"
    title: str = "Test"
    master_stack_addr: str = "0x06004000"
    slave_stack_addr: str = "0x06001E00"
    first_read_addr: str = "0x06004000"
    first_read_size: str = "0"
    first_read_bin: str = "A.BIN"

    def header_args(self) -> list[str]:
        """Positional make-ip arguments following the program binary."""
        return [
            self.version,
            self.release_date,
            self.areas,
            self.peripherals,
            self.title,
            self.master_stack_addr,
            self.slave_stack_addr,
            self.first_read_addr,
            self.first_read_size,
        ]


@dataclass(frozen=True)
class BuildDirs:
    """Absolute working directories for a build."""

    build: Path
    image: Path
    audio_tracks: Path
    assets: Path
    output: Path


@dataclass(frozen=True)
class BuildSpec:
    """Resolved project description, read-only for the whole run.

    Attributes:
        program: Program name, used for elf/bin/iso/cue file names
        sources: Source files as configured (absolute)
        assets: Binary assets to convert with bin2o
        dirs: Working directories
        image: Boot header and disc image metadata
        cflags: Extra C flags
        cxxflags: Extra C++ flags
        ldflags: Extra linker flags
        defsyms: Extra linker symbols as NAME=VALUE
        track_header_dependencies: Recompile when a header listed in the
            compiler's .d file is newer than the object
    """

    program: str
    sources: Tuple[Path, ...]
    dirs: BuildDirs
    assets: Tuple[AssetSpec, ...] = ()
    image: ImageMetadata = field(default_factory=ImageMetadata)
    cflags: Tuple[str, ...] = ()
    cxxflags: Tuple[str, ...] = ()
    ldflags: Tuple[str, ...] = ()
    defsyms: Tuple[str, ...] = ()
    track_header_dependencies: bool = False

    @property
    def elf_path(self) -> Path:
        return self.dirs.build / f"{self.program}.elf"

    @property
    def bin_path(self) -> Path:
        return self.dirs.build / f"{self.program}.bin"

    @property
    def map_path(self) -> Path:
        return self.dirs.build / f"{self.program}.map"

    @property
    def sym_path(self) -> Path:
        return self.dirs.build / f"{self.program}.sym"

    @property
    def asm_path(self) -> Path:
        return self.dirs.build / f"{self.program}.asm"

    @property
    def ip_bin_path(self) -> Path:
        return self.dirs.build / IP_BIN_NAME

    @property
    def iso_path(self) -> Path:
        return self.dirs.output / f"{self.program}.iso"

    @property
    def cue_path(self) -> Path:
        return self.dirs.output / f"{self.program}.cue"

    def linker_symbols(self) -> list[str]:
        """All --defsym flags: user symbols followed by the stack symbols."""
        flags = []
        for entry in self.defsyms:
            name, _, value = entry.partition("=")
            flags.append(defsym_flag(name.strip(), value.strip()))
        flags.append(defsym_flag(MASTER_STACK_SYMBOL, self.image.master_stack_addr))
        flags.append(defsym_flag(SLAVE_STACK_SYMBOL, self.image.slave_stack_addr))
        return flags


@dataclass(frozen=True)
class BuildContext:
    """Everything the pipeline needs for one invocation.

    Attributes:
        spec: Resolved project description
        toolchain: Tool locations
        flags: Assembled compiler/linker flags
        verbose: Whether to print per-file and per-command detail
    """

    spec: BuildSpec
    toolchain: Toolchain
    flags: BuildFlags
    verbose: bool = False

    @classmethod
    def create(
        cls,
        spec: BuildSpec,
        toolchain: Toolchain,
        verbose: bool = False,
    ) -> "BuildContext":
        """Create a BuildContext with flags resolved for this project.

        The C++ specs file is only requested when a configured source is C++.
        """
        has_cxx = any(role_for(source) is SourceRole.CXX for source in spec.sources)
        flags = BuildFlags.create(
            toolchain=toolchain,
            map_file=spec.map_path,
            has_cxx=has_cxx,
            defsyms=spec.linker_symbols(),
            extra_cflags=spec.cflags,
            extra_cxxflags=spec.cxxflags,
            extra_ldflags=spec.ldflags,
        )
        return cls(
            spec=spec,
            toolchain=toolchain,
            flags=flags,
            verbose=verbose,
        )
