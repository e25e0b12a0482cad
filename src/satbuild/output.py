"""
Timestamped console output for satbuild.

Every line is prefixed with the time elapsed since program launch in
MM:SS.cc format, so a failed run shows how far the pipeline got and how
long each stage took.

Example output:
    00:00.01 satbuild v0.1.0
    00:00.02 Building demo...
    00:00.02 [1/6] Compiling sources...
    00:00.31       main.c
    00:00.31 [2/6] Linking demo.elf...

Usage:
    from satbuild.output import log, log_phase, log_detail

    log("Building demo...")
    log_phase(1, 6, "Compiling sources...")
    log_detail("main.c")

Verbosity is not tracked here. Callers hold the verbose flag (see
BuildContext.verbose) and decide whether to emit a line.
"""

import sys
import time
from typing import Optional, TextIO

_start_time: Optional[float] = None
_output_stream: TextIO = sys.stdout
_error_stream: TextIO = sys.stderr


def init_timer(output_stream: Optional[TextIO] = None, error_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    Called automatically on first log if not called explicitly.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout)
        error_stream: Optional stream for warnings and errors (defaults to sys.stderr)
    """
    global _start_time, _output_stream, _error_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream
    if error_stream is not None:
        _error_stream = error_stream


def get_elapsed() -> float:
    """Get elapsed time in seconds since timer initialization."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str, stream: Optional[TextIO] = None) -> None:
    target = stream if stream is not None else _output_stream
    target.write(f"{format_timestamp()} {message}\n")
    target.flush()


def log(message: str) -> None:
    """Log a message with timestamp."""
    _print(message)


def log_phase(phase: int, total: int, message: str) -> None:
    """
    Log a pipeline stage message.

    Format: [N/M] message
    """
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6) -> None:
    """Log an indented detail line."""
    _print(f"{' ' * indent}{message}")


def log_header(title: str, version: str) -> None:
    """Log the program banner."""
    _print(f"{title} v{version}")
    _print("")


def log_build_complete(build_time: float) -> None:
    """Log build completion with total elapsed time."""
    _print("")
    _print(f"Build time: {build_time:.2f}s")


def log_warning(message: str) -> None:
    """Log a warning message to the error stream."""
    _print(f"WARNING: {message}", _error_stream)

