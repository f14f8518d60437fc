import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Set

from .default_rules import LAYER_MARKERS
from .errors import DestinationCollision, DuplicateDirectory, UnclassifiedFile
from .models import Category, MigrationPlan, MoveStatus, PlanIssue, PlannedMove, TestFile
from .utils import folder_key

log = logging.getLogger(__name__)

CONFTEST_TEMPLATE = '''"""Shared setup for {layer} tests."""
from pathlib import Path

import pytest

_HERE = Path(__file__).resolve().parent


def pytest_configure(config):
    config.addinivalue_line("markers", "{layer}: {layer} tests")


def pytest_collection_modifyitems(config, items):
    for item in items:
        if _HERE in Path(str(item.path)).resolve().parents:
            item.add_marker(pytest.mark.{layer})
'''


class MigrationPlanner:
    """Turns classified TestFiles into a MigrationPlan. Reads the filesystem, never writes it."""

    def __init__(self, root: Path, tests_dir: str = "tests", scaffold: bool = True):
        self.root = root
        self.tests_dir = Path(tests_dir)
        self.scaffold = scaffold

    def build(self, files: Iterable[TestFile]) -> MigrationPlan:
        files = sorted(files, key=lambda f: f.rel_path.as_posix())
        plan = MigrationPlan(root=self.root)
        status: Dict[Path, MoveStatus] = {}

        for f in files:
            if f.category in (None, Category.UNCLASSIFIED):
                status[f.rel_path] = MoveStatus.UNCLASSIFIED
                plan.issues.append(PlanIssue.from_error(UnclassifiedFile(f.rel_path), [f.rel_path]))
            elif f.destination == f.rel_path:
                status[f.rel_path] = MoveStatus.IN_PLACE
            else:
                status[f.rel_path] = MoveStatus.MOVE

        self._mark_duplicate_dirs(files, status, plan)
        self._mark_collisions(files, status, plan)

        for f in files:
            plan.moves.append(PlannedMove(
                source=f.rel_path,
                destination=f.destination,
                category=f.category or Category.UNCLASSIFIED,
                status=status[f.rel_path],
            ))

        plan.directories = self._missing_dirs(plan.pending())
        if self.scaffold:
            plan.scaffolds = self._scaffolds(plan)
        log.info("Planned %d moves, %d held back, %d issues",
                 len(plan.pending()), len(plan.held_back()), len(plan.issues))
        return plan

    def _mark_duplicate_dirs(self, files: List[TestFile], status: Dict[Path, MoveStatus],
                             plan: MigrationPlan) -> None:
        # sprint-6 next to sprint_6: merging them could silently drop files
        groups: Dict[tuple, Set[Path]] = defaultdict(set)
        for f in files:
            for d in f.rel_path.parents:
                if d == Path("."):
                    continue
                groups[(d.parent, folder_key(d.name))].add(d)

        flagged: List[Path] = []
        for dirs in sorted(groups.values(), key=lambda s: sorted(s)):
            if len(dirs) > 1:
                err = DuplicateDirectory(dirs)
                log.warning("%s", err)
                plan.issues.append(PlanIssue.from_error(err, err.directories))
                flagged.extend(dirs)

        if not flagged:
            return
        for f in files:
            if status[f.rel_path] is MoveStatus.UNCLASSIFIED:
                continue
            if any(d in f.rel_path.parents for d in flagged):
                status[f.rel_path] = MoveStatus.REVIEW

    def _mark_collisions(self, files: List[TestFile], status: Dict[Path, MoveStatus],
                         plan: MigrationPlan) -> None:
        by_dest: Dict[Path, List[Path]] = defaultdict(list)
        for f in files:
            if f.destination is not None:
                by_dest[f.destination].append(f.rel_path)

        for dest, sources in by_dest.items():
            if len(sources) > 1:
                err = DestinationCollision(dest, sources)
            elif status[sources[0]] is not MoveStatus.IN_PLACE and (self.root / dest).exists():
                err = DestinationCollision(dest)
            else:
                continue
            log.warning("%s", err)
            plan.issues.append(PlanIssue.from_error(err, sources))
            for src in sources:
                if status[src] is MoveStatus.MOVE:
                    status[src] = MoveStatus.COLLISION

    def _missing_dirs(self, moves: List[PlannedMove]) -> List[Path]:
        missing: Set[Path] = set()
        for m in moves:
            for d in m.destination.parents:
                if d == Path(".") or (self.root / d).is_dir():
                    break
                missing.add(d)
        return sorted(missing, key=lambda p: p.as_posix())

    def _scaffolds(self, plan: MigrationPlan) -> Dict[Path, str]:
        targets = {m.destination for m in plan.moves if m.destination is not None}
        out: Dict[Path, str] = {}

        # data-only folders (fixtures, reports) are not packages
        py_dirs: Set[Path] = set()
        for m in plan.pending():
            if m.destination.suffix == ".py":
                py_dirs.update(m.destination.parents)

        for d in plan.directories:
            if self.tests_dir in d.parents and d in py_dirs:
                out[d / "__init__.py"] = ""

        for layer, marker in LAYER_MARKERS.items():
            layer_dir = self.tests_dir / layer
            if not any(layer_dir in m.destination.parents for m in plan.pending()):
                continue
            if (self.root / layer_dir / "conftest.py").exists():
                continue
            out[layer_dir / "conftest.py"] = CONFTEST_TEMPLATE.format(layer=marker)

        return {p: body for p, body in sorted(out.items(), key=lambda kv: kv[0].as_posix())
                if p not in targets}
