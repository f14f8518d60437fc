from pathlib import Path
from typing import Iterable


class SuiteSorterError(Exception):
    """Base error for the project."""
    code = "error"


class PathNotFound(SuiteSorterError):
    code = "path-not-found"


class PermissionDenied(SuiteSorterError):
    code = "permission-denied"


class DestinationCollision(SuiteSorterError):
    code = "destination-collision"

    def __init__(self, destination: Path, sources: Iterable[Path] = ()):
        self.destination = destination
        self.sources = list(sources)
        if self.sources:
            joined = ", ".join(str(s) for s in self.sources)
            msg = f"{len(self.sources)} files map to {destination}: {joined}"
        else:
            msg = f"Destination already exists: {destination}"
        super().__init__(msg)


class UnclassifiedFile(SuiteSorterError):
    """Not fatal: the file stays where it is and needs manual review."""
    code = "unclassified-file"

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"No rule matches {path}; left for manual review")


class DuplicateDirectory(SuiteSorterError):
    code = "duplicate-directory"

    def __init__(self, directories: Iterable[Path]):
        self.directories = sorted(directories)
        names = ", ".join(str(d) for d in self.directories)
        super().__init__(f"Directories differ only by separator or case: {names}")


class RuleFileError(SuiteSorterError):
    code = "rule-file"


class MoveError(SuiteSorterError):
    code = "move-failed"


def os_error_code(err: OSError) -> str:
    return PermissionDenied.code if isinstance(err, PermissionError) else MoveError.code
