"""Compiler and linker flag sets.

Design:
    Flags are declared once as immutable tuples and assembled into a
    BuildFlags value per build. Nothing else in satbuild edits flag lists.

    - SHARED_FLAGS apply to C, C++ and assembly
    - C_FLAGS / CXX_FLAGS add the language standard and language warnings
    - Specs files are passed to both compile and link; the C++ runtime specs
      file is only added when the project has C++ sources, so C-only
      programs do not pull in C++ startup code
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .toolchain import Toolchain

SHARED_FLAGS: tuple[str, ...] = (
    "-W",
    "-Wall",
    "-Wduplicated-branches",
    "-Wduplicated-cond",
    "-Wextra",
    "-Winit-self",
    "-Wmissing-include-dirs",
    "-Wno-format",
    "-Wno-main",
    "-Wnull-dereference",
    "-Wshadow",
    "-Wstrict-aliasing",
    "-Wunused",
    "-Wunused-parameter",
    "-save-temps=obj",
)

C_FLAGS: tuple[str, ...] = (
    "-std=c11",
    "-Wbad-function-cast",
)

CXX_FLAGS: tuple[str, ...] = (
    "-std=c++17",
    "-fno-exceptions",
    "-fno-rtti",
    "-fno-unwind-tables",
    "-fno-asynchronous-unwind-tables",
    "-fno-threadsafe-statics",
    "-fno-use-cxa-atexit",
)

SPECS_FILES: tuple[str, ...] = ("yaul.specs", "yaul-main.specs")
CXX_SPECS_FILES: tuple[str, ...] = ("yaul-main-c++.specs",)

# Stack symbols consumed by the libyaul startup code
MASTER_STACK_SYMBOL = "___master_stack"
SLAVE_STACK_SYMBOL = "___slave_stack"


def defsym_flag(name: str, value: str) -> str:
    """Linker flag defining an absolute symbol."""
    return f"-Wl,--defsym={name}={value}"


@dataclass(frozen=True)
class BuildFlags:
    """Fully assembled flags for one build.

    Attributes:
        cflags: Flags for C and assembly compilation
        cxxflags: Flags for C++ compilation
        specs: -specs= flags for every compile and link
        cxx_specs: Extra -specs= flags when C++ sources are present
        ldflags: Linker flags, including map file and defined symbols
    """

    cflags: tuple[str, ...]
    cxxflags: tuple[str, ...]
    specs: tuple[str, ...]
    cxx_specs: tuple[str, ...]
    ldflags: tuple[str, ...]

    @classmethod
    def create(
        cls,
        toolchain: Toolchain,
        map_file: Path,
        has_cxx: bool,
        defsyms: Sequence[str] = (),
        extra_cflags: Sequence[str] = (),
        extra_cxxflags: Sequence[str] = (),
        extra_ldflags: Sequence[str] = (),
    ) -> "BuildFlags":
        """Assemble flags for a project.

        Args:
            toolchain: Toolchain providing the libyaul include directory
            map_file: Linker map output path
            has_cxx: Whether any C++ source is part of the build
            defsyms: Complete -Wl,--defsym=... flags
            extra_cflags: User C flags appended after the defaults
            extra_cxxflags: User C++ flags appended after the defaults
            extra_ldflags: User link flags appended before defined symbols
        """
        include = f"-I{toolchain.include_dir.as_posix()}"
        return cls(
            cflags=C_FLAGS + SHARED_FLAGS + (include,) + tuple(extra_cflags),
            cxxflags=CXX_FLAGS + SHARED_FLAGS + (include,) + tuple(extra_cxxflags),
            specs=tuple(f"-specs={spec}" for spec in SPECS_FILES),
            cxx_specs=tuple(f"-specs={spec}" for spec in CXX_SPECS_FILES) if has_cxx else (),
            ldflags=(
                "-static",
                "-Wl,--gc-sections",
                f"-Wl,-Map,{map_file.as_posix()}",
            )
            + tuple(extra_ldflags)
            + tuple(defsyms),
        )
