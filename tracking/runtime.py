"""
Call counters for engine entry points.

Every public engine operation calls :func:`t` with its dotted name. Counts
live in memory for the process; when ``PITCHBOOK_TRACKING_FILE`` is set they
are also mirrored to that JSON file after each call and restored from it on
import, so coverage of the engine's operations accumulates across runs.
"""

from __future__ import annotations

import contextlib
import json
import os
import threading
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict, Optional

TRACKING_FILE_ENV = "PITCHBOOK_TRACKING_FILE"

_LOCK = threading.RLock()
_COUNTS: Dict[str, int] = {}


def tracking_file() -> Optional[Path]:
    """Configured counts file, or None when counts stay in memory only."""
    raw = os.getenv(TRACKING_FILE_ENV, "").strip()
    return Path(raw) if raw else None


def _coerce_count(raw: Any) -> Optional[int]:
    try:
        return max(int(raw), 0)
    except (TypeError, ValueError):
        return None


def restore_counts(path: Optional[Path] = None) -> int:
    """
    Merge counts saved by an earlier run into this process.

    Unreadable files and malformed entries are ignored. Returns the number
    of operation names restored.
    """
    path = path or tracking_file()
    if path is None or not path.exists():
        return 0
    try:
        saved = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return 0
    if not isinstance(saved, dict):
        return 0

    restored = 0
    with _LOCK:
        for name, raw in saved.items():
            count = _coerce_count(raw)
            if not name or count is None:
                continue
            _COUNTS[str(name)] = count
            restored += 1
    return restored


def _write_counts(path: Path) -> None:
    # Staged next to the target, then renamed over it.
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile("w", encoding="utf-8", dir=path.parent, delete=False) as handle:
        json.dump(_COUNTS, handle, sort_keys=True, indent=0)
        handle.write("\n")
    staged = Path(handle.name)
    try:
        staged.replace(path)
    except OSError:
        with contextlib.suppress(OSError):
            staged.unlink()
        raise


def flush_counts() -> Optional[Path]:
    """Write the current counts to the configured file and return its path."""
    path = tracking_file()
    if path is None:
        return None
    with _LOCK:
        try:
            _write_counts(path)
        except OSError:
            # Counting must never break the operation being counted.
            return None
    return path


def t(func_name: str) -> None:
    """Count one call of the named engine operation."""
    if not func_name:
        return
    with _LOCK:
        _COUNTS[func_name] = _COUNTS.get(func_name, 0) + 1
        flush_counts()


def call_counts() -> Dict[str, int]:
    """Copy of the counts recorded so far."""
    with _LOCK:
        return dict(_COUNTS)


def reset_counts() -> None:
    with _LOCK:
        _COUNTS.clear()


restore_counts()
