"""SH-2 Compiler.

Compiles C, C++ and assembly sources into namespaced object files and
converts binary assets into linkable objects.

Compilation Process:
    1. Map the source to its object path with the namespacer
    2. Skip the file if the object is up to date
    3. Run gcc/g++ with dependency flags (-MT/-MF/-MD), language flags and
       specs files

Each source is checked against its own object only. Header changes are
ignored unless header tracking is enabled, in which case the prerequisites
listed in the object's .d file join the staleness check.
"""

import logging
from pathlib import Path
from typing import List

from .build_context import AssetSpec, BuildContext
from .classifier import SourceFile, SourceRole
from .namespacer import dependency_path, object_path
from .stage_executor import StageExecutor
from .staleness import is_stale, read_dependency_file

logger = logging.getLogger(__name__)


class Compiler:
    """Builds compile and asset-conversion commands and runs them.

    Args:
        context: Build context
        executor: Stage executor used to spawn the tools
    """

    def __init__(self, context: BuildContext, executor: StageExecutor):
        self.context = context
        self.executor = executor
        self.toolchain = context.toolchain
        self.flags = context.flags
        self.build_dir = context.spec.dirs.build

    def object_for(self, source: Path) -> Path:
        """Namespaced object path for a source file."""
        return object_path(self.build_dir, source)

    def needs_rebuild(self, source: Path, obj: Path) -> bool:
        """Check whether obj must be regenerated from source."""
        inputs: List[Path] = [source]
        if self.context.spec.track_header_dependencies:
            inputs.extend(read_dependency_file(dependency_path(obj)))
        return is_stale(obj, inputs)

    def compile_command(self, source: SourceFile, obj: Path) -> List[str]:
        """Full command line for compiling one source."""
        output = [
            "-c",
            "-o",
            str(obj),
            str(source.path),
        ]

        if source.role is SourceRole.ASM:
            return [str(self.toolchain.cc), *self.flags.cflags, *output]

        dependency_flags = [
            "-MT",
            str(obj),
            "-MF",
            str(dependency_path(obj)),
            "-MD",
        ]

        if source.role is SourceRole.CXX:
            return [
                str(self.toolchain.cxx),
                *dependency_flags,
                *self.flags.cxxflags,
                *self.flags.specs,
                *self.flags.cxx_specs,
                *output,
            ]

        if source.role is SourceRole.C:
            return [
                str(self.toolchain.cc),
                *dependency_flags,
                *self.flags.cflags,
                *self.flags.specs,
                *output,
            ]

        raise ValueError(f"{source.path} is not a compilable source ({source.role.value})")

    def compile_source(self, source: SourceFile) -> bool:
        """Compile source if its object is stale.

        Returns:
            True if the compiler ran, False if the object was up to date

        Raises:
            StageExecutionError: If the compiler fails
        """
        obj = self.object_for(source.path)
        if not self.needs_rebuild(source.path, obj):
            return False

        self.executor.run("compile", self.compile_command(source, obj))
        return True

    def asset_command(self, asset: AssetSpec, obj: Path) -> List[str]:
        """bin2o command converting a binary asset into an object."""
        return [str(self.toolchain.bin2o), str(asset.file), asset.symbol, str(obj)]

    def convert_asset(self, asset: AssetSpec) -> bool:
        """Convert a binary asset with bin2o if its object is stale.

        The object lands at the namespaced location of ``<asset>.o`` so the
        link stage finds it the same way it finds compiled objects.

        Returns:
            True if bin2o ran, False if the object was up to date
        """
        obj = self.object_for(asset.file)
        if not is_stale(obj, [asset.file]):
            return False

        self.executor.run("asset", self.asset_command(asset, obj))
        return True
