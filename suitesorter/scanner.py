import logging
import os
from pathlib import Path
from typing import Iterator, Set, Tuple

from .errors import PermissionDenied
from .models import TestFile
from .utils import validate_root

log = logging.getLogger(__name__)

ARTIFACT_DIRS = frozenset({
    "fixtures", "helpers", "utils", "page_objects", "pages",
    "test_data", "data", "reports", "allure-results", "screenshots",
})
SKIP_DIRS = frozenset({"__pycache__", "node_modules"})
SKIP_SUFFIXES = (".pyc", ".pyo")


def is_test_artifact(rel_path: Path) -> bool:
    """Naming/location predicate for files the scanner picks up."""
    name = rel_path.name
    if name == "__init__.py" or name.endswith(SKIP_SUFFIXES):
        return False
    if name.startswith("test_") or name.endswith("_test.py") or name == "conftest.py":
        return True
    return any(part in ARTIFACT_DIRS for part in rel_path.parts[:-1])


class FolderScanner:
    """Walks the tests folder under a project root and yields TestFile objects."""

    def __init__(self, root: Path, tests_dir: str = "tests", ignore_hidden: bool = True):
        self.root = root
        self.tests_dir = tests_dir
        self.ignore_hidden = ignore_hidden

    def scan(self) -> Iterator[TestFile]:
        scan_root = validate_root(self.root, self.tests_dir)
        try:
            os.scandir(scan_root).close()
        except PermissionError as e:
            raise PermissionDenied(f"Cannot read tests folder: {scan_root}") from e

        visited: Set[Tuple[int, int]] = set()
        for dirpath, dirnames, filenames in os.walk(scan_root, followlinks=True, onerror=self._on_error):
            st = os.stat(dirpath)
            key = (st.st_dev, st.st_ino)
            if key in visited:
                log.info("Skipping already visited folder (symlink cycle?): %s", dirpath)
                dirnames[:] = []
                continue
            visited.add(key)

            dirnames[:] = sorted(d for d in dirnames if self._keep_dir(d))
            current = Path(dirpath)
            for fname in sorted(filenames):
                if self.ignore_hidden and fname.startswith("."):
                    continue
                p = current / fname
                if not p.is_file():
                    continue  # broken symlink, socket, ...
                rel = p.relative_to(self.root)
                if is_test_artifact(rel):
                    yield TestFile(path=p, rel_path=rel)

    def _keep_dir(self, name: str) -> bool:
        if name in SKIP_DIRS:
            return False
        return not (self.ignore_hidden and name.startswith("."))

    @staticmethod
    def _on_error(err: OSError) -> None:
        log.warning("Skipping unreadable folder %s: %s", err.filename, err.strerror)
