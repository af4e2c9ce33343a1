"""File journal that lets a group of file changes be rolled back."""

from __future__ import annotations

import json
import os
import shutil
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Union

JOURNAL_DIR_NAME = ".loom_journal"

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class _JournalEntry:
    path: str
    existed: bool
    snapshot_file: Optional[str]


class AtomicTransaction:
    """Records file state before changes so they can be undone.

    Used as a context manager it commits on success and rolls back when
    the block raises.
    """

    def __init__(self, txn_dir: PathLike) -> None:
        self.txn_dir = Path(txn_dir)
        self.manifest_path = self.txn_dir / "manifest.json"
        self._entries: list[_JournalEntry] = []
        self._snapshotted: set[str] = set()
        self._persist_manifest()

    def __enter__(self) -> "AtomicTransaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    def snapshot_path(self, path: PathLike) -> None:
        """Remember the current state of *path*; only the first call counts."""
        key = os.fspath(path)
        if key in self._snapshotted:
            return
        self._snapshotted.add(key)

        target = Path(key)
        if target.is_file():
            snapshot_name = f"snapshot-{len(self._entries)}.bin"
            (self.txn_dir / snapshot_name).write_bytes(target.read_bytes())
            self._entries.append(_JournalEntry(key, True, snapshot_name))
        else:
            self._entries.append(_JournalEntry(key, False, None))

        self._persist_manifest()

    def commit(self) -> None:
        """Keep all changes and discard the journal."""
        shutil.rmtree(self.txn_dir)

    def rollback(self) -> None:
        """Restore every snapshotted path, newest first, then discard the journal."""
        for entry in reversed(self._entries):
            target = Path(entry.path)
            if entry.existed:
                if entry.snapshot_file is not None:
                    data = (self.txn_dir / entry.snapshot_file).read_bytes()
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(data)
            elif target.is_file():
                target.unlink()

        shutil.rmtree(self.txn_dir)

    def _persist_manifest(self) -> None:
        manifest = {"entries": [asdict(entry) for entry in self._entries]}
        self.manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")


class AtomicContext:
    """Owns the journal directory under which transactions are kept."""

    def __init__(self, base: PathLike) -> None:
        self.journal_dir = Path(base) / JOURNAL_DIR_NAME
        self.journal_dir.mkdir(parents=True, exist_ok=True)

    def begin(self) -> AtomicTransaction:
        """Start a new transaction in its own journal directory."""
        nanos = time.time_ns()
        while True:
            txn_dir = self.journal_dir / f"txn-{nanos}"
            try:
                txn_dir.mkdir(parents=True)
                break
            except FileExistsError:
                nanos += 1
        return AtomicTransaction(txn_dir)