import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Iterable, List

from .models import ApplyReport, MoveLogEntry

META_DIR = ".suitesorter"


class MoveLogger:
    """Append-only journal of applied batches. Also writes a JSON file per batch for quick undo.

    Paths are stored relative to the project root.
    """
    def __init__(self, root: Path):
        self.root = root
        self.meta_dir = self.root / META_DIR
        self.csv_path = self.meta_dir / "moves.csv"

    def _ensure(self) -> None:
        # created lazily: reading the journal must not touch the tree
        self.meta_dir.mkdir(parents=True, exist_ok=True)
        if not self.csv_path.exists():
            with self.csv_path.open("w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(["batch_id", "action", "src", "dst", "timestamp"])

    def new_batch_id(self) -> str:
        base = datetime.now().strftime("%Y%m%d-%H%M%S")
        batch_id, i = base, 1
        while (self.meta_dir / f"{batch_id}.json").exists():
            i += 1
            batch_id = f"{base}-{i}"
        return batch_id

    def write_batch(self, entries: Iterable[MoveLogEntry]) -> None:
        entries = list(entries)
        if not entries:
            return
        self._ensure()

        # CSV append
        with self.csv_path.open("a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            for e in entries:
                writer.writerow([
                    e.batch_id,
                    e.action,
                    e.src.as_posix() if e.src else "",
                    e.dst.as_posix(),
                    e.timestamp.isoformat(),
                ])

        # JSON snapshot for the batch
        batch_file = self.meta_dir / f"{entries[0].batch_id}.json"
        data = [
            {
                "action": e.action,
                "src": e.src.as_posix() if e.src else None,
                "dst": e.dst.as_posix(),
                "timestamp": e.timestamp.isoformat(),
            }
            for e in entries
        ]
        batch_file.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def record(self, report: ApplyReport) -> str | None:
        """Journal everything an apply run changed; returns the batch id, or None if nothing changed."""
        batch_id = self.new_batch_id()
        now = datetime.now()
        entries = [MoveLogEntry(batch_id, "mkdir", None, d, now) for d in report.created_dirs]
        entries += [MoveLogEntry(batch_id, "move", r.src, r.dst, now) for r in report.moved]
        entries += [MoveLogEntry(batch_id, "create", None, p, now) for p in report.created_files]
        entries += [MoveLogEntry(batch_id, "delete", None, p, now) for p in report.removed_files]
        entries += [MoveLogEntry(batch_id, "rmdir", None, d, now) for d in report.removed_dirs]
        if not entries:
            return None
        self.write_batch(entries)
        report.batch_id = batch_id
        return batch_id

    def list_batches(self) -> List[str]:
        """Return batch ids sorted newest→oldest."""
        if not self.csv_path.exists():
            return []
        ids = []
        with self.csv_path.open("r", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                ids.append(row["batch_id"])
        return sorted(set(ids), reverse=True)

    def load_batch(self, batch_id: str) -> List[MoveLogEntry]:
        path = self.meta_dir / f"{batch_id}.json"
        if not path.exists():
            return []
        raw = json.loads(path.read_text(encoding="utf-8"))
        out: List[MoveLogEntry] = []
        for item in raw:
            out.append(
                MoveLogEntry(
                    batch_id=batch_id,
                    action=item["action"],
                    src=Path(item["src"]) if item["src"] else None,
                    dst=Path(item["dst"]),
                    timestamp=datetime.fromisoformat(item["timestamp"]),
                )
            )
        return out
