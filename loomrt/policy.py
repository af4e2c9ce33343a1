"""Trust modes and resolution of capability paths from a policy file."""

from __future__ import annotations

import enum
import os
from pathlib import Path, PurePath
from typing import Iterable, Optional, Union

_GLOB_META = frozenset("*?[]{}")


class TrustMode(enum.Enum):
    """How much a program is trusted to do."""

    TRUSTED = "trusted"
    RESTRICTED = "restricted"


def parse_trust_mode(raw: str) -> TrustMode:
    """Parse a trust mode name case-insensitively; raise ValueError otherwise."""
    folded = raw.translate(str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"))
    for mode in TrustMode:
        if mode.value == folded:
            return mode
    raise ValueError(
        f"Invalid trust mode '{raw}'; expected 'trusted' or 'restricted'"
    )


def has_glob_meta(raw: str) -> bool:
    """Return True when *raw* contains a glob metacharacter."""
    return any(ch in _GLOB_META for ch in raw)


def _strip_trailing_separators(text: str) -> str:
    seps = os.sep + (os.altsep or "")
    stripped = text.rstrip(seps)
    return stripped or text


def canonicalize_with_existing_ancestor(path: Union[str, os.PathLike]) -> Path:
    """Resolve the deepest existing ancestor of *path* and re-append the rest.

    When no ancestor can be resolved, *path* is returned unchanged.
    """
    original = Path(path)
    cursor = os.fspath(path)
    tail: list[str] = []

    while not os.path.exists(cursor):
        cursor = _strip_trailing_separators(cursor)
        name = PurePath(cursor).name if cursor else ""
        if name in ("", ".."):
            return original
        tail.append(name)
        parent = os.path.dirname(cursor)
        if parent == cursor:
            return original
        cursor = parent

    try:
        canonical = Path(cursor).resolve(strict=True)
    except (OSError, RuntimeError):
        return original

    for segment in reversed(tail):
        canonical = canonical / segment
    return canonical


def current_filesystem_root() -> Path:
    """Return the root of the file system holding the working directory."""
    try:
        cwd = Path.cwd()
    except OSError:
        return Path(os.sep)
    return Path(cwd.anchor) if cwd.anchor else Path(os.sep)


def resolve_capability_paths(
    raw_paths: Optional[Iterable[str]], base_dir: Union[str, os.PathLike]
) -> tuple[list[Path], list[str]]:
    """Split policy entries into literal paths and glob patterns.

    Relative entries are taken relative to *base_dir*; ``"*"`` stands for
    the whole file system.  Globs are canonicalized and use ``/`` separators.
    """
    base = Path(base_dir)
    literal_paths: list[Path] = []
    glob_paths: list[str] = []

    for raw in raw_paths or ():
        if raw.strip() == "*":
            literal_paths.append(current_filesystem_root())
            continue

        as_path = Path(raw)
        resolved = as_path if as_path.is_absolute() else base / as_path
        if has_glob_meta(raw):
            canonical = canonicalize_with_existing_ancestor(resolved)
            glob_paths.append(str(canonical).replace("\\", "/"))
        else:
            literal_paths.append(resolved)

    return literal_paths, glob_paths