import os
import re
from pathlib import Path

from .errors import PathNotFound, PermissionDenied

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_SEPARATORS = re.compile(r"[-\s.]+")


def ensure_path(path_str: str) -> Path:
    """Return a resolved Path object and ensure it exists."""
    p = Path(path_str).expanduser().resolve()
    if not p.exists():
        raise PathNotFound(f"Path does not exist: {p}")
    return p


def validate_root(root: Path, tests_dir: str) -> Path:
    """Check the project root and return the absolute directory to scan."""
    if not root.exists():
        raise PathNotFound(f"Root folder does not exist: {root}")
    if not root.is_dir():
        raise PathNotFound(f"Root is not a folder: {root}")
    scan_root = root / tests_dir
    if not scan_root.is_dir():
        raise PathNotFound(f"Tests folder not found: {scan_root}")
    if not os.access(scan_root, os.R_OK | os.X_OK):
        raise PermissionDenied(f"Cannot read tests folder: {scan_root}")
    return scan_root


def unique_path(dest: Path) -> Path:
    """
    If dest exists, append ' (1)', ' (2)', ... before the suffix.
    Returns a Path that does not exist.
    """
    if not dest.exists():
        return dest

    stem = dest.stem
    suffix = dest.suffix
    parent = dest.parent
    i = 1
    while True:
        candidate = parent / f"{stem} ({i}){suffix}"
        if not candidate.exists():
            return candidate
        i += 1


def snake_case(text: str) -> str:
    """NetworkCoverage, Network-Coverage and network coverage all become network_coverage."""
    text = _ACRONYM_BOUNDARY.sub(r"\1_\2", text)
    text = _WORD_BOUNDARY.sub(r"\1_\2", text)
    text = _SEPARATORS.sub("_", text)
    return re.sub(r"_+", "_", text).strip("_").lower()


def folder_key(name: str) -> str:
    """Key under which sibling folder names like sprint-6 and Sprint_6 are the same."""
    return re.sub(r"[-_\s]+", "_", name).lower()
