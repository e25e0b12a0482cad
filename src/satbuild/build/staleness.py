"""Staleness Oracle.

Decides whether an artifact must be regenerated by comparing modification
times. A missing file reads as epoch zero, which gives the rule its
asymmetry: a missing output is always stale, a missing input never makes
an output stale on its own account.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)

EPOCH = 0


def get_mtime(path: Path) -> int:
    """Modification time in nanoseconds, or EPOCH if the file is missing."""
    try:
        return Path(path).stat().st_mtime_ns
    except OSError:
        return EPOCH


def newest_mtime(paths: Iterable[Path]) -> int:
    """Newest modification time among paths (EPOCH for an empty list)."""
    return max((get_mtime(p) for p in paths), default=EPOCH)


def is_stale(output: Path, inputs: Iterable[Path]) -> bool:
    """Return True if output is missing or older than its newest input."""
    if not Path(output).exists():
        return True
    return newest_mtime(inputs) > get_mtime(output)


# Whitespace not preceded by a backslash separates prerequisites
_DEP_SPLIT = re.compile(r"(?<!\\)\s+")


def read_dependency_file(dep_path: Path) -> List[Path]:
    """Parse a make-style dependency file written by ``gcc -MD``.

    Format:
        target.o: src.c include/a.h \\
          include/with\\ space.h

    Only the first rule is read; the target itself is not returned.

    Args:
        dep_path: Path to the .d file

    Returns:
        Prerequisite paths, or an empty list if the file is missing
    """
    try:
        text = Path(dep_path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []

    text = text.replace("\\\r\n", " ").replace("\\\n", " ")
    first_rule = text.strip().splitlines()[0] if text.strip() else ""

    # Split on the first ':' that is followed by whitespace or end of line, so
    # Windows drive letters in the target survive.
    match = re.search(r":(\s|$)", first_rule)
    if match is None:
        logger.debug(f"No rule found in dependency file {dep_path}")
        return []

    prerequisites = first_rule[match.end():].strip()
    if not prerequisites:
        return []

    return [Path(token.replace("\\ ", " ")) for token in _DEP_SPLIT.split(prerequisites) if token]
