"""
Build system components for satbuild.

This package provides the incremental disc-image pipeline:
- Path namespacing of build artifacts
- Source classification
- Timestamp-based staleness checks
- Compilation (sh2eb-elf-gcc/g++), linking and binary extraction
- Boot header, ISO and CUE synthesis
- Pipeline orchestration
"""

from .build_context import BuildContext, BuildSpec
from .pipeline import BuildPipeline, BuildResult, Stage

__all__ = [
    "BuildContext",
    "BuildSpec",
    "BuildPipeline",
    "BuildResult",
    "Stage",
]
