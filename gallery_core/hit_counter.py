"""Per-page hit counts persisted to a CSV snapshot.

Every read and write of the count map, and of the snapshot file, is
serialised by a single exclusive lock owned by the counter.
"""
from __future__ import annotations
import csv
import logging
import threading
from pathlib import Path
from typing import Dict, List, NamedTuple

from .config import SpecialPage
from .exceptions import StatsPersistenceError
from .utils import write_csv_atomic

logger = logging.getLogger(__name__)

TOTAL = SpecialPage.TOTAL.value


class PageHitCount(NamedTuple):
    page: str
    hit_count: int


def sanitise_page_name(page: str) -> str:
    return page.strip('/')


class HitCounter:
    """In-memory hit counts with a synchronous CSV snapshot."""

    def __init__(self, snapshot_path: Path):
        self.snapshot_path = Path(snapshot_path)
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, page: str, amount: int = 1) -> int:
        """Add ``amount`` to ``page`` and to the total, then rewrite the snapshot.

        A failed snapshot write is logged; the in-memory count is kept.
        """
        with self._lock:
            count = self._add(page, amount)
            try:
                self._write_snapshot()
            except StatsPersistenceError as e:
                logger.error(f"Hit count for {page!r} not persisted: {e}", exc_info=True)
            return count

    def _add(self, page: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"Hit count amount must be non-negative, got {amount}")
        name = sanitise_page_name(page)
        if not name:
            raise ValueError(f"Page name {page!r} is empty after sanitising")
        self._counts[name] = self._counts.get(name, 0) + amount
        self._counts[TOTAL] = self._counts.get(TOTAL, 0) + amount
        return self._counts[name]

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def snapshot(self) -> List[PageHitCount]:
        """Current counts, highest first; equal counts ordered by page name."""
        with self._lock:
            return self._sorted()

    def _sorted(self) -> List[PageHitCount]:
        items = sorted(self._counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [PageHitCount(page, count) for page, count in items]

    def save(self):
        with self._lock:
            self._write_snapshot()

    def _write_snapshot(self):
        rows = [[entry.page, entry.hit_count] for entry in self._sorted()]
        try:
            write_csv_atomic(self.snapshot_path, rows, prefix='.stats-')
        except OSError as e:
            raise StatsPersistenceError(f"Failed to write stats snapshot {self.snapshot_path}: {e}")

    def restore(self) -> int:
        """Load counts from the snapshot file; returns the number of pages restored.

        The ``total`` row is ignored and recomputed from the page rows.
        """
        if not self.snapshot_path.exists():
            logger.warning(f"No stats snapshot at {self.snapshot_path}, starting with empty counts")
            return 0

        try:
            with self.snapshot_path.open('r', newline='', encoding='utf-8') as f:
                rows = list(csv.reader(f))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise StatsPersistenceError(f"Failed to read stats snapshot {self.snapshot_path}: {e}")

        restored = 0
        with self._lock:
            for line_no, row in enumerate(rows, start=1):
                if not row:
                    continue
                if len(row) != 2:
                    raise StatsPersistenceError(
                        f"{self.snapshot_path}:{line_no}: expected 2 columns, got {len(row)}")
                page, raw_count = row
                if page == TOTAL:
                    continue
                try:
                    self._add(page, int(raw_count))
                except ValueError as e:
                    raise StatsPersistenceError(f"{self.snapshot_path}:{line_no}: {e}")
                restored += 1

        logger.info(f"Restored hit counts for {restored} page(s) from {self.snapshot_path}")
        return restored
