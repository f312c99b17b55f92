"""Shared helpers for gallery core modules."""
from __future__ import annotations
import csv
import os
import tempfile
from pathlib import Path
from typing import Iterable, Sequence


def write_csv_atomic(path: Path, rows: Iterable[Sequence], prefix: str = '.tmp-'):
    """Write ``rows`` to a temp file beside ``path``, then replace ``path`` with it.

    Raises OSError (or csv.Error for bad rows); the temp file never survives a failure.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=prefix, suffix='.csv', dir=str(path.parent))
    try:
        with os.fdopen(fd, 'w', newline='', encoding='utf-8') as f:
            csv.writer(f).writerows(rows)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
