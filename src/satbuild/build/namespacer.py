"""Path Namespacer.

Maps any source path, including paths outside the project tree, to a single
flat file name inside the build directory:

    /home/user/demo/src/main.c  ->  build/@home@user@demo@src@main.c

Directory separators become '@'. Characters that could make two different
paths collide are percent-escaped first ('%' -> '%25', '@' -> '%40',
':' -> '%3A'), so '@' in the result only ever stands for a separator and the
mapping stays injective.
"""

import os
from pathlib import Path

from ..errors import PathResolutionError

SEPARATOR_SUBSTITUTE = "@"

_ESCAPES = (
    ("%", "%25"),
    ("@", "%40"),
    (":", "%3A"),
)


def canonical_path(path: Path) -> Path:
    """Return the absolute, normalised form of path.

    Symlinks are not followed, so two links to the same file stay distinct.

    Raises:
        PathResolutionError: If the path cannot be made absolute
    """
    try:
        return Path(os.path.normpath(Path(path).absolute()))
    except (OSError, ValueError) as e:
        raise PathResolutionError(Path(path), str(e)) from e


def artifact_name(path: Path) -> str:
    """Flatten path into a single collision-free file name segment.

    Raises:
        PathResolutionError: If the path cannot be resolved or is not valid text
    """
    absolute = canonical_path(path)
    text = absolute.as_posix()

    if "\x00" in text:
        raise PathResolutionError(Path(path), "path contains a NUL character")
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PathResolutionError(Path(path), "path is not representable as text") from e

    for raw, escaped in _ESCAPES:
        text = text.replace(raw, escaped)
    return text.replace("/", SEPARATOR_SUBSTITUTE)


def artifact_path(build_dir: Path, path: Path) -> Path:
    """Join the flattened name of path onto build_dir."""
    return build_dir / artifact_name(path)


def object_path(build_dir: Path, source: Path) -> Path:
    """Object file location for a source (suffix replaced by .o)."""
    return artifact_path(build_dir, source.with_suffix(".o"))


def dependency_path(object_file: Path) -> Path:
    """Compiler-generated dependency listing next to an object file."""
    return object_file.with_suffix(".d")
