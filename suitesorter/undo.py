import logging
import shutil
from pathlib import Path
from typing import List

from .errors import os_error_code
from .logger import MoveLogger
from .models import MoveLogEntry, MoveResult
from .utils import unique_path

log = logging.getLogger(__name__)


class UndoManager:
    """Reverses one journaled batch, newest action first."""

    def __init__(self, root: Path, logger: MoveLogger, dry_run: bool = True):
        self.root = root
        self.logger = logger
        self.dry_run = dry_run

    def undo_batch(self, batch_id: str) -> List[MoveResult]:
        entries: List[MoveLogEntry] = self.logger.load_batch(batch_id)
        results: List[MoveResult] = []
        for e in reversed(entries):
            handler = getattr(self, f"_undo_{e.action}", None)
            if handler is None:
                log.warning("Unknown journal action %r in batch %s", e.action, batch_id)
                continue
            try:
                result = handler(e)
            except OSError as err:
                log.error("Undo of %s %s failed: %s", e.action, e.dst, err)
                result = MoveResult(e.dst, e.src or e.dst, performed=False,
                                    reason=f"{os_error_code(err)}: {err}", failed=True)
            results.append(result)
        return results

    def _undo_move(self, e: MoveLogEntry) -> MoveResult:
        src_now = self.root / e.dst
        dst_restore = self.root / e.src

        if not src_now.exists():
            return MoveResult(e.dst, e.src, performed=False, reason="missing source for undo")

        final_dst = dst_restore
        if final_dst.exists():
            final_dst = unique_path(final_dst)
            reason = "restore name conflict"
        else:
            reason = ""
        final_rel = final_dst.relative_to(self.root)

        if self.dry_run:
            return MoveResult(e.dst, final_rel, performed=False, reason=reason)

        final_dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src_now), str(final_dst))
        return MoveResult(e.dst, final_rel, performed=True, reason=reason)

    def _undo_create(self, e: MoveLogEntry) -> MoveResult:
        path = self.root / e.dst
        if not path.is_file():
            return MoveResult(e.dst, e.dst, performed=False, reason="already gone")
        if self.dry_run:
            return MoveResult(e.dst, e.dst, performed=False, reason="remove created file")
        path.unlink()
        return MoveResult(e.dst, e.dst, performed=True, reason="removed created file")

    def _undo_mkdir(self, e: MoveLogEntry) -> MoveResult:
        path = self.root / e.dst
        if not path.is_dir():
            return MoveResult(e.dst, e.dst, performed=False, reason="already gone")
        leftovers = [p for p in path.iterdir() if p.name != "__pycache__"]
        if leftovers:
            return MoveResult(e.dst, e.dst, performed=False, reason="folder not empty, kept")
        if self.dry_run:
            return MoveResult(e.dst, e.dst, performed=False, reason="remove created folder")
        shutil.rmtree(path)
        return MoveResult(e.dst, e.dst, performed=True, reason="removed created folder")

    def _undo_rmdir(self, e: MoveLogEntry) -> MoveResult:
        path = self.root / e.dst
        if path.is_dir():
            return MoveResult(e.dst, e.dst, performed=False, reason="folder exists")
        if self.dry_run:
            return MoveResult(e.dst, e.dst, performed=False, reason="recreate folder")
        path.mkdir(parents=True)
        return MoveResult(e.dst, e.dst, performed=True, reason="recreated folder")

    def _undo_delete(self, e: MoveLogEntry) -> MoveResult:
        # only empty package markers are ever deleted
        path = self.root / e.dst
        if path.exists():
            return MoveResult(e.dst, e.dst, performed=False, reason="file exists")
        if self.dry_run:
            return MoveResult(e.dst, e.dst, performed=False, reason="recreate file")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
        return MoveResult(e.dst, e.dst, performed=True, reason="recreated file")
