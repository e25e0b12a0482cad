"""Stage Executor.

Spawns one external tool at a time and turns any failure into a
StageExecutionError. There is no retry and no timeout: the toolchain either
fully succeeds or fully fails, and a rerun resumes from the failed stage
because completed artifacts stay on disk.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..errors import StageExecutionError
from ..output import log_detail
from ..subprocess_utils import format_command, safe_run

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


class StageExecutor:
    """Runs external tools for pipeline stages.

    Args:
        verbose: Print each command line before running it
        runner: Process runner with the subprocess.run signature
    """

    def __init__(self, verbose: bool = False, runner: Optional[Runner] = None):
        self.verbose = verbose
        self.runner: Runner = runner if runner is not None else safe_run
        self.invocations: List[List[str]] = []

    @property
    def invocation_count(self) -> int:
        return len(self.invocations)

    def run(
        self,
        stage: str,
        cmd: Sequence[str],
        stdout_path: Optional[Path] = None,
        cwd: Optional[Path] = None,
    ) -> subprocess.CompletedProcess:
        """Run cmd for stage and wait for it to finish.

        Args:
            stage: Stage name used in diagnostics
            cmd: Program and arguments
            stdout_path: Write the tool's stdout to this file instead of capturing it
            cwd: Working directory for the tool

        Returns:
            CompletedProcess of the successful run

        Raises:
            StageExecutionError: If the tool cannot be spawned or exits non-zero
        """
        argv = [str(arg) for arg in cmd]
        self.invocations.append(argv)

        if self.verbose:
            log_detail(format_command(argv), indent=8)
        logger.debug(f"[{stage}] {argv}")

        try:
            if stdout_path is not None:
                with open(stdout_path, "w", encoding="utf-8") as stdout_file:
                    result = self.runner(
                        argv,
                        stdout=stdout_file,
                        stderr=subprocess.PIPE,
                        text=True,
                        encoding="utf-8",
                        errors="replace",
                        cwd=cwd,
                    )
            else:
                result = self.runner(
                    argv,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    cwd=cwd,
                )
        except OSError as e:
            raise StageExecutionError(stage, argv, None, str(e)) from e

        if result.returncode != 0:
            output = "\n".join(part for part in (result.stdout, result.stderr) if part)
            raise StageExecutionError(stage, argv, result.returncode, output)

        if result.stderr:
            # Compiler warnings
            for line in result.stderr.rstrip().splitlines():
                log_detail(line, indent=8)

        return result
