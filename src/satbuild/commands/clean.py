"""Clean command implementation.

Removes everything a build produces:
- build, image staging and audio tracks directories
- *.iso and *.cue files in the project directory and the output directory

Directory names come from satbuild.ini when it exists, otherwise the
defaults are used, so a project can be cleaned even with a broken config.
"""

import logging
import os
import shutil
import stat
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

from ..config.project_config import DEFAULT_DIRECTORIES, ProjectConfig
from ..errors import ConfigurationError
from ..output import log, log_detail, log_warning

logger = logging.getLogger(__name__)

GENERATED_PATTERNS = ("*.iso", "*.cue")


@dataclass
class CleanResult:
    """Paths removed by a clean run."""

    removed_dirs: List[Path] = field(default_factory=list)
    removed_files: List[Path] = field(default_factory=list)

    @property
    def removed(self) -> List[Path]:
        return self.removed_dirs + self.removed_files


def _on_rm_error(func: Callable[..., Any], path: str, exc: Any) -> None:
    """Retry removal of read-only files (Windows)."""
    del exc  # Unused
    os.chmod(path, stat.S_IWRITE)
    func(path)


def safe_rmtree(path: Path) -> None:
    """Recursively remove a directory, clearing read-only bits as needed."""
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_on_rm_error)
    else:
        shutil.rmtree(path, onerror=_on_rm_error)


def _clean_targets(project_dir: Path, config_path: Optional[Path]) -> tuple[List[Path], List[Path]]:
    """Directories to remove and directories to sweep for iso/cue files."""
    if config_path is not None and config_path.exists():
        try:
            dirs = ProjectConfig(config_path).get_directories()
            return [dirs.build, dirs.image, dirs.audio_tracks], [project_dir, dirs.output]
        except ConfigurationError as e:
            log_warning(f"{e}; cleaning default directories")

    defaults = [project_dir / DEFAULT_DIRECTORIES[key] for key in ("build", "image", "audio_tracks")]
    return defaults, [project_dir, project_dir / DEFAULT_DIRECTORIES["output"]]


def clean_project(project_dir: Path, config_path: Optional[Path] = None) -> CleanResult:
    """Remove build outputs from a project.

    Args:
        project_dir: Project root
        config_path: satbuild.ini to read directory names from

    Returns:
        CleanResult listing removed paths

    Raises:
        OSError: If a path exists but cannot be removed
    """
    result = CleanResult()
    directories, sweep_dirs = _clean_targets(project_dir, config_path)

    log(f"Cleaning {project_dir}")
    for directory in directories:
        if directory.is_dir():
            safe_rmtree(directory)
            result.removed_dirs.append(directory)
            log_detail(f"removed {directory}")

    seen = set()
    for sweep_dir in sweep_dirs:
        resolved = sweep_dir.resolve()
        if resolved in seen or not sweep_dir.is_dir():
            continue
        seen.add(resolved)
        for pattern in GENERATED_PATTERNS:
            for path in sorted(sweep_dir.glob(pattern)):
                if path.is_file():
                    path.unlink()
                    result.removed_files.append(path)
                    log_detail(f"removed {path}")

    if not result.removed:
        log_detail("Nothing to clean")
    logger.debug(f"Clean removed {len(result.removed)} paths")
    return result
