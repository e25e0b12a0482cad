"""Pytest configuration and fixtures for satbuild tests.

The pipeline tests never spawn the real SH-2 toolchain. FakeToolchain stands
in for subprocess.run: it records every argv and writes the files each tool
would produce. All file timestamps come from FakeClock, so staleness
decisions do not depend on filesystem mtime resolution.

This conftest also addresses Python 3.13 compatibility issues with pytest's
capture fixtures (https://github.com/pytest-dev/pytest/issues/11439).
"""

import io
import os
import subprocess
import sys
import time
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pytest

from satbuild import output
from satbuild.build.build_context import BuildContext, BuildDirs, BuildSpec
from satbuild.build.stage_executor import StageExecutor
from satbuild.build.toolchain import Toolchain

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@dataclass
class OutputStreams:
    stdout: io.StringIO
    stderr: io.StringIO


@pytest.fixture(autouse=True)
def output_streams():
    """Route satbuild.output into string buffers and restore the globals afterwards."""
    saved = (output._start_time, output._output_stream, output._error_stream)
    streams = OutputStreams(io.StringIO(), io.StringIO())
    output.init_timer(streams.stdout, streams.stderr)
    yield streams
    output._start_time, output._output_stream, output._error_stream = saved


class FakeClock:
    """Hands out strictly increasing mtimes, one second apart."""

    def __init__(self):
        self.now = time.time_ns()

    def tick(self) -> int:
        self.now += 1_000_000_000
        return self.now

    def touch(self, path: Path, content: Optional[str] = None) -> Path:
        """Create or update path and give it a fresh mtime."""
        path.parent.mkdir(parents=True, exist_ok=True)
        if content is not None:
            path.write_text(content, encoding="utf-8")
        elif not path.exists():
            path.write_text("", encoding="utf-8")
        stamp = self.tick()
        os.utime(path, ns=(stamp, stamp))
        return path


class FakeToolchain:
    """subprocess.run replacement emulating the SH-2 toolchain and libyaul tools.

    Args:
        clock: Clock used to timestamp every generated file
        fail_on: Tool name suffix (e.g. "make-iso") that exits with status 1
        headers: Extra prerequisites written into every .d file
    """

    def __init__(self, clock: FakeClock, fail_on: Optional[str] = None, headers: Optional[List[Path]] = None):
        self.clock = clock
        self.fail_on = fail_on
        self.headers = list(headers or [])
        self.calls: List[List[str]] = []
        self.cwds: List[Optional[Path]] = []

    def tools(self) -> List[str]:
        """Tool names of every call, with wrap-error unwrapped."""
        return [self._tool_name(call) for call in self.calls]

    @staticmethod
    def _tool_name(argv: List[str]) -> str:
        args = argv[1:] if Path(argv[0]).name == "wrap-error" else argv
        return Path(args[0]).name

    def __call__(self, argv, **kwargs) -> subprocess.CompletedProcess:
        argv = list(argv)
        self.calls.append(argv)
        cwd = kwargs.get("cwd")
        self.cwds.append(Path(cwd) if cwd is not None else None)

        args = argv[1:] if Path(argv[0]).name == "wrap-error" else argv
        tool = Path(args[0]).name

        if self.fail_on is not None and tool.endswith(self.fail_on):
            return subprocess.CompletedProcess(argv, 1, "", f"{tool}: error: simulated failure\n")

        if tool.endswith("-gcc") or tool.endswith("-g++"):
            self._compile_or_link(args)
        elif tool.endswith("-gcc-nm"):
            kwargs["stdout"].write("06004000 T _main\n")
        elif tool.endswith("-objdump"):
            kwargs["stdout"].write("disassembly\n")
        elif tool.endswith("-objcopy"):
            self.clock.touch(Path(args[-1]), "binary")
        elif tool == "bin2o":
            self.clock.touch(Path(args[-1]), "asset object")
        elif tool == "make-ip":
            self.clock.touch(Path(cwd) / "IP.BIN", "ip")
        elif tool == "make-iso":
            output_dir, program = Path(args[3]), args[4]
            self.clock.touch(output_dir / f"{program}.iso", "iso")
        elif tool == "make-cue":
            self.clock.touch(Path(args[2]).with_suffix(".cue"), "cue")
        else:
            raise AssertionError(f"unexpected tool {tool}")

        return subprocess.CompletedProcess(argv, 0, "", "")

    def _compile_or_link(self, args: List[str]) -> None:
        target = Path(args[args.index("-o") + 1])
        for arg in args:
            if arg.startswith("-Wl,-Map,"):
                self.clock.touch(Path(arg[len("-Wl,-Map,"):]), "map")
        if "-MF" in args:
            source = args[-1]
            prerequisites = " ".join([source, *(str(h) for h in self.headers)])
            self.clock.touch(Path(args[args.index("-MF") + 1]), f"{target}: {prerequisites}\n")
        self.clock.touch(target, "object" if "-c" in args else "elf")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_toolchain(clock) -> FakeToolchain:
    return FakeToolchain(clock)


@pytest.fixture
def toolchain_root(tmp_path, clock) -> Path:
    """A libyaul install root holding only the IP template."""
    root = tmp_path / "yaul"
    clock.touch(root / "share" / "yaul" / "ip" / "ip.sx", "! ip template")
    return root


@pytest.fixture
def project_dir(tmp_path, clock) -> Path:
    """A demo project with a single main.c."""
    project = tmp_path / "demo"
    clock.touch(project / "main.c", "int main(void) { return 0; }\n")
    return project


def _dirs(project: Path) -> BuildDirs:
    return BuildDirs(
        build=project / "build",
        image=project / "cd",
        audio_tracks=project / "audio-tracks",
        assets=project,
        output=project,
    )


def _context(
    project: Path,
    toolchain_root: Path,
    sources: Optional[List[Path]] = None,
    verbose: bool = False,
    **spec_fields,
) -> BuildContext:
    """BuildContext for the demo program in project."""
    spec = BuildSpec(
        program="demo",
        sources=tuple(sources if sources is not None else [project / "main.c"]),
        dirs=_dirs(project),
        **spec_fields,
    )
    return BuildContext.create(
        spec=spec,
        toolchain=Toolchain(install_root=toolchain_root),
        verbose=verbose,
    )


@pytest.fixture
def make_context(toolchain_root):
    """Factory for BuildContext objects using the fake toolchain root."""

    def factory(project: Path, **kwargs) -> BuildContext:
        return _context(project, toolchain_root, **kwargs)

    return factory


@pytest.fixture
def make_executor(fake_toolchain):
    """Factory for StageExecutors backed by the fake toolchain."""

    def factory(verbose: bool = False, runner=None) -> StageExecutor:
        return StageExecutor(verbose=verbose, runner=runner if runner is not None else fake_toolchain)

    return factory
