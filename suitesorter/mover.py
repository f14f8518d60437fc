import logging
import shutil
from pathlib import Path
from typing import Iterable, List

from .errors import (
    DestinationCollision,
    MoveError,
    PathNotFound,
    PermissionDenied,
    SuiteSorterError,
    os_error_code,
)
from .models import ApplyReport, MigrationPlan, MoveResult, PlannedMove

log = logging.getLogger(__name__)

# A folder holding only these is considered empty once its tests moved out.
DISPOSABLE = ("__init__.py", "__pycache__")


class SafeMover:
    """Executes a MigrationPlan. Sequential and non-transactional: a failed
    move is recorded and the remaining moves still run."""

    def __init__(self, root: Path, tests_dir: str = "tests", prune_empty: bool = True):
        self.root = root
        self.tests_dir = Path(tests_dir)
        self.prune_empty = prune_empty

    def move_one(self, move: PlannedMove) -> MoveResult:
        src = self.root / move.source
        dst = self.root / move.destination

        if src == dst:
            return MoveResult(move.source, move.destination, performed=False, reason="same location")
        if not src.exists():
            raise PathNotFound(f"Source vanished: {move.source}")
        if dst.exists():
            raise DestinationCollision(move.destination)

        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(src), str(dst))
        except PermissionError as e:
            raise PermissionDenied(f"Cannot move {move.source}: {e.strerror}") from e
        except OSError as e:
            raise MoveError(f"Cannot move {move.source}: {e}") from e
        return MoveResult(move.source, move.destination, performed=True)

    def apply(self, plan: MigrationPlan) -> ApplyReport:
        report = ApplyReport(skipped=plan.held_back())
        for m in report.skipped:
            log.warning("Skipping %s (%s)", m.source, m.status.value)

        for d in plan.directories:
            try:
                (self.root / d).mkdir(parents=True, exist_ok=False)
                report.created_dirs.append(d)
            except FileExistsError:
                pass
            except OSError as e:
                # the moves into it will fail and say so individually
                log.warning("Cannot create folder %s: %s", d, e)

        for m in plan.pending():
            try:
                result = self.move_one(m)
            except SuiteSorterError as e:
                log.error("Move failed: %s -> %s: %s", m.source, m.destination, e)
                result = MoveResult(m.source, m.destination, performed=False,
                                    reason=f"{e.code}: {e}", failed=True)
            else:
                log.debug("Moved %s -> %s", m.source, m.destination)
            report.results.append(result)

        self._write_scaffolds(plan, report)
        if self.prune_empty:
            self._prune([r.src for r in report.moved], report)
        return report

    def _write_scaffolds(self, plan: MigrationPlan, report: ApplyReport) -> None:
        for rel, body in plan.scaffolds.items():
            path = self.root / rel
            if not path.parent.is_dir():
                continue  # nothing got moved there
            try:
                with path.open("x", encoding="utf-8") as f:
                    f.write(body)
            except FileExistsError:
                continue
            except OSError as e:
                log.warning("Cannot create %s: %s", rel, e)
                report.errors.append((rel, f"{os_error_code(e)}: {e}"))
                continue
            report.created_files.append(rel)

    def _prune(self, moved_sources: Iterable[Path], report: ApplyReport) -> None:
        candidates = set()
        for src in moved_sources:
            for d in src.parents:
                if d == self.tests_dir or self.tests_dir not in d.parents:
                    break
                candidates.add(d)

        # deepest first so parents see their emptied children
        for d in sorted(candidates, key=lambda p: len(p.parts), reverse=True):
            self._prune_dir(d, report)

    def _prune_dir(self, rel_dir: Path, report: ApplyReport) -> None:
        path = self.root / rel_dir
        if not path.is_dir() or path.is_symlink():
            return
        entries: List[Path] = list(path.iterdir())
        if any(e.name not in DISPOSABLE for e in entries):
            return
        init = path / "__init__.py"
        if init.is_file() and init.stat().st_size > 0:
            return
        try:
            if init.exists():
                init.unlink()
                report.removed_files.append(rel_dir / "__init__.py")
            shutil.rmtree(path / "__pycache__", ignore_errors=True)
            path.rmdir()
        except OSError as e:
            log.warning("Cannot remove emptied folder %s: %s", rel_dir, e)
            return
        report.removed_dirs.append(rel_dir)
