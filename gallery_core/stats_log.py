"""Daily history of hit counts as a CSV log with growing columns.

Layout of the log file:
- header row: Date, page1, page2, ...
- one row per tick: the ISO date followed by each page's count

A page seen for the first time gets a new column; every earlier row is
backfilled with "0" so all rows keep the header's length.
"""
from __future__ import annotations
import csv
import logging
import threading
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .exceptions import GalleryError, StatsLogError
from .hit_counter import HitCounter
from .utils import write_csv_atomic

logger = logging.getLogger(__name__)

DATE_COLUMN = 'Date'


def read_stats_log(path: Path) -> List[List[str]]:
    """Read all log rows; a missing or empty file yields just the header."""
    path = Path(path)
    if not path.exists():
        return [[DATE_COLUMN]]
    try:
        with path.open('r', newline='', encoding='utf-8') as f:
            records = [row for row in csv.reader(f, strict=True) if row]
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise StatsLogError(f"Failed to read stats log {path}: {e}")

    if not records:
        return [[DATE_COLUMN]]

    width = len(records[0])
    for line_no, row in enumerate(records, start=1):
        if len(row) != width:
            raise StatsLogError(
                f"{path}:{line_no}: row has {len(row)} columns, header has {width}")
    return records


def append_stats_row(records: List[List[str]], page_counts: Iterable[Tuple[str, int]],
                     today: date) -> List[List[str]]:
    """Append a row for ``today`` to ``records``, growing the header as needed."""
    header = records[0]
    new_row = ['0'] * len(header)
    new_row[0] = today.isoformat()

    for page, count in page_counts:
        try:
            column = header.index(page, 1)
        except ValueError:
            header.append(page)
            for row in records[1:]:
                row.append('0')
            new_row.append('0')
            column = len(header) - 1
        new_row[column] = str(count)

    records.append(new_row)
    return records


def write_stats_log(path: Path, records: List[List[str]]):
    try:
        write_csv_atomic(path, records, prefix='.stats_log-')
    except OSError as e:
        raise StatsLogError(f"Failed to write stats log {path}: {e}")


def update_stats_log(path: Path, hit_counter: HitCounter, today: Optional[date] = None) -> Dict:
    """Append today's snapshot of ``hit_counter`` to the log at ``path``."""
    today = today or date.today()
    records = read_stats_log(path)
    known = set(records[0][1:])
    snapshot = hit_counter.snapshot()

    append_stats_row(records, snapshot, today)
    write_stats_log(path, records)

    return {
        'date': today.isoformat(),
        'rows': len(records) - 1,
        'columns': len(records[0]),
        'new_pages': [entry.page for entry in snapshot if entry.page not in known],
    }


class StatsLogAppender:
    """Runs log updates one at a time and shares the file safely with readers."""

    def __init__(self, path: Path, hit_counter: HitCounter):
        self.path = Path(path)
        self.hit_counter = hit_counter
        self._lock = threading.Lock()

    def tick(self, today: Optional[date] = None) -> Optional[Dict]:
        """Append one row; a failure is logged and the tick skipped."""
        with self._lock:
            try:
                summary = update_stats_log(self.path, self.hit_counter, today)
            except GalleryError as e:
                logger.error(f"Stats log update skipped: {e}", exc_info=True)
                return None
        logger.info(f"Stats log row for {summary['date']} written "
                    f"({summary['rows']} rows, {summary['columns']} columns)")
        if summary['new_pages']:
            logger.info(f"  - New pages: {', '.join(summary['new_pages'])}")
        return summary

    def read_bytes(self) -> Optional[bytes]:
        with self._lock:
            try:
                return self.path.read_bytes()
            except FileNotFoundError:
                return None
