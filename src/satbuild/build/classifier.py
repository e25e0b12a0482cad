"""Source Classifier.

Deduplicates the configured source list and partitions it by role:

    C         .c
    C++       .cxx .cpp .cc .C
    Assembly  .sx
    Object    .o   (binary assets already converted by bin2o)

Duplicates are detected on the canonical absolute path, so "src/../main.c"
and "main.c" collapse into one entry. The deduplicated list is sorted, which
keeps diagnostic output reproducible between runs.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from .namespacer import canonical_path

logger = logging.getLogger(__name__)


class SourceRole(Enum):
    """Role of a source file in the pipeline, inferred from its extension."""

    C = "c"
    CXX = "c++"
    ASM = "asm"
    OBJECT = "object"


EXTENSION_ROLES: dict[str, SourceRole] = {
    ".c": SourceRole.C,
    ".cxx": SourceRole.CXX,
    ".cpp": SourceRole.CXX,
    ".cc": SourceRole.CXX,
    ".C": SourceRole.CXX,
    ".sx": SourceRole.ASM,
    ".o": SourceRole.OBJECT,
}


@dataclass(frozen=True)
class SourceFile:
    """A classified input file."""

    path: Path
    role: SourceRole


@dataclass
class SourceCollection:
    """Sources partitioned by role, each bucket in sorted order.

    Attributes:
        c_sources: C translation units
        cxx_sources: C++ translation units
        asm_sources: Preprocessed assembly (.sx) files
        object_sources: Pre-converted asset objects, linked without compiling
        ignored: Files whose extension has no role
    """

    c_sources: List[SourceFile] = field(default_factory=list)
    cxx_sources: List[SourceFile] = field(default_factory=list)
    asm_sources: List[SourceFile] = field(default_factory=list)
    object_sources: List[SourceFile] = field(default_factory=list)
    ignored: List[Path] = field(default_factory=list)

    @property
    def compilable(self) -> List[SourceFile]:
        """C, then C++, then assembly sources."""
        return self.c_sources + self.cxx_sources + self.asm_sources

    @property
    def all_sources(self) -> List[SourceFile]:
        """Every classified source, compilable first, then objects."""
        return self.compilable + self.object_sources


def role_for(path: Path) -> Optional[SourceRole]:
    """Return the role for path's extension, or None if unrecognised."""
    return EXTENSION_ROLES.get(path.suffix)


def unique_sources(paths: Iterable[Path]) -> List[Path]:
    """Canonicalise, sort and deduplicate a list of paths."""
    canonical = sorted(canonical_path(Path(p)) for p in paths)
    unique: List[Path] = []
    for path in canonical:
        if not unique or unique[-1] != path:
            unique.append(path)
    return unique


def classify_sources(paths: Iterable[Path]) -> SourceCollection:
    """Partition paths into role buckets.

    Files with unrecognised extensions are collected in ``ignored`` so the caller
    can report them.

    Raises:
        PathResolutionError: If a path cannot be canonicalised
    """
    collection = SourceCollection()
    buckets = {
        SourceRole.C: collection.c_sources,
        SourceRole.CXX: collection.cxx_sources,
        SourceRole.ASM: collection.asm_sources,
        SourceRole.OBJECT: collection.object_sources,
    }

    for path in unique_sources(paths):
        role = role_for(path)
        if role is None:
            logger.debug(f"Ignoring source with unrecognised extension: {path}")
            collection.ignored.append(path)
            continue
        buckets[role].append(SourceFile(path=path, role=role))

    return collection
