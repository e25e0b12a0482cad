"""Exception hierarchy for satbuild.

Every error raised by the library derives from SatbuildError so the CLI can
report it with a single handler. Filesystem failures are left as OSError.
"""

from pathlib import Path
from typing import Optional, Sequence


class SatbuildError(Exception):
    """Base class for all satbuild errors."""

    pass


class ConfigurationError(SatbuildError):
    """Raised when the project configuration is missing or invalid."""

    pass


class PathResolutionError(SatbuildError):
    """Raised when a source path cannot be turned into a build artifact path."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"unable to resolve '{path}': {reason}")


class StageExecutionError(SatbuildError):
    """Raised when an external tool fails to spawn or exits non-zero."""

    def __init__(
        self,
        stage: str,
        cmd: Sequence[str],
        returncode: Optional[int],
        stderr: str = "",
    ):
        self.stage = stage
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr

        if returncode is None:
            message = f"{stage}: failed to execute {self.cmd[0] if self.cmd else '<empty command>'}"
        else:
            message = f"{stage}: {self.cmd[0]} exited with status {returncode}"
        if stderr:
            preview = stderr.strip()[:500]
            message += f"\n{preview}"
        super().__init__(message)
