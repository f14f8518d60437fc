from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import SuiteSorterError


class Category(str, Enum):
    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"
    HELPER = "helper"
    FIXTURE = "fixture"
    REPORT = "report"
    UNCLASSIFIED = "unclassified"


class MoveStatus(str, Enum):
    MOVE = "move"
    IN_PLACE = "in-place"
    COLLISION = "collision"
    REVIEW = "review"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class ClassificationRule:
    pattern: str
    category: Category
    destination: str


@dataclass(frozen=True)
class TestFile:
    path: Path  # absolute
    rel_path: Path  # relative to the project root
    category: Optional[Category] = None
    destination: Optional[Path] = None  # relative to the project root
    rule: Optional[ClassificationRule] = None

    __test__ = False  # keep pytest from collecting this class

    @property
    def name(self) -> str:
        return self.rel_path.name


@dataclass(frozen=True)
class PlannedMove:
    source: Path
    destination: Optional[Path]
    category: Category
    status: MoveStatus


@dataclass(frozen=True)
class PlanIssue:
    code: str
    message: str
    paths: Tuple[Path, ...] = ()

    @classmethod
    def from_error(cls, err: SuiteSorterError, paths=()) -> "PlanIssue":
        return cls(err.code, str(err), tuple(paths))


@dataclass
class MigrationPlan:
    root: Path
    moves: List[PlannedMove] = field(default_factory=list)
    directories: List[Path] = field(default_factory=list)
    scaffolds: Dict[Path, str] = field(default_factory=dict)  # relative path -> content
    issues: List[PlanIssue] = field(default_factory=list)

    def pending(self) -> List[PlannedMove]:
        return [m for m in self.moves if m.status is MoveStatus.MOVE]

    def held_back(self) -> List[PlannedMove]:
        return [m for m in self.moves if m.status in (MoveStatus.COLLISION, MoveStatus.REVIEW)]

    def counts_by_category(self) -> Dict[str, int]:
        counts = {c.value: 0 for c in Category}
        for m in self.moves:
            counts[m.category.value] += 1
        return counts


@dataclass(frozen=True)
class MoveResult:
    src: Path
    dst: Path
    performed: bool  # False if dry-run, skipped or failed
    reason: str = ""  # e.g. "same location", "permission-denied: ..."
    failed: bool = False


@dataclass(frozen=True)
class MoveLogEntry:
    batch_id: str
    action: str  # mkdir, move, create, delete or rmdir
    src: Optional[Path]
    dst: Path
    timestamp: datetime


@dataclass
class ApplyReport:
    results: List[MoveResult] = field(default_factory=list)
    skipped: List[PlannedMove] = field(default_factory=list)
    created_dirs: List[Path] = field(default_factory=list)
    created_files: List[Path] = field(default_factory=list)
    removed_files: List[Path] = field(default_factory=list)
    removed_dirs: List[Path] = field(default_factory=list)
    errors: List[Tuple[Path, str]] = field(default_factory=list)  # non-move problems
    batch_id: Optional[str] = None

    @property
    def moved(self) -> List[MoveResult]:
        return [r for r in self.results if r.performed]

    @property
    def failures(self) -> List[MoveResult]:
        return [r for r in self.results if r.failed]

    @property
    def ok(self) -> bool:
        return not (self.failures or self.skipped or self.errors)
