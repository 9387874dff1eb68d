"""Persistent, staleness-checked cache of extracted classes per source file."""

from __future__ import annotations

import json
import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import CacheEntry

CACHE_FILENAME = "ast_cache.json"
MAX_ENTRIES = 500
RETAIN_ENTRIES = 250


class ExtractionCache:
    """Stores class lists keyed by absolute file path and checked against mtime.

    An entry is served only while its file exists and has not been modified
    since the entry was stored. Every store rewrites the whole JSON document.
    """

    def __init__(
        self,
        cache_dir: Path,
        *,
        max_entries: int = MAX_ENTRIES,
        retain_entries: int = RETAIN_ENTRIES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dir = Path(cache_dir)
        self._path = self._dir / CACHE_FILENAME
        self._max_entries = max_entries
        self._retain_entries = retain_entries
        self._clock = clock
        self._lock = threading.Lock()
        # Per-path locks with the number of callers using them; dropped when unused.
        self._path_locks: Dict[str, Tuple[threading.Lock, int]] = {}
        self.logger = get_logger("cache")
        self._entries: Dict[str, CacheEntry] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def fetch(self, file_path: str, compute: Callable[[], Optional[Sequence[str]]]) -> List[str]:
        """Return cached classes for ``file_path`` or store the result of ``compute``.

        The mtime recorded with a new entry is the one seen before ``compute``
        ran, so an edit made while computing makes the entry stale.
        """
        key = os.path.abspath(file_path)
        lock = self._acquire(key)
        try:
            with lock:
                with self._lock:
                    entry = self._entries.get(key)
                    current_mtime = _mtime(key)
                    if entry is not None and current_mtime is not None and current_mtime <= entry.mtime:
                        entry.accessed_at = self._clock()
                        return list(entry.classes)

                classes = compute()
                if classes is None:
                    return []
                result = list(classes)
                self._store(key, result, current_mtime)
                return result
        finally:
            self._release(key)

    def persist(self) -> None:
        """Write the cache document, pruning it to the configured bounds first."""
        with self._lock:
            self._save()

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
            self._save()

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers

    def _acquire(self, key: str) -> threading.Lock:
        with self._lock:
            lock, users = self._path_locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._path_locks[key] = (lock, users + 1)
            return lock

    def _release(self, key: str) -> None:
        with self._lock:
            lock, users = self._path_locks[key]
            if users <= 1:
                del self._path_locks[key]
            else:
                self._path_locks[key] = (lock, users - 1)

    def _store(self, key: str, classes: List[str], mtime: Optional[float]) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(
                classes=classes,
                mtime=mtime if mtime is not None else now,
                accessed_at=now,
            )
            self._save()

    def _prune(self) -> None:
        if len(self._entries) <= self._max_entries:
            return
        ordered = sorted(self._entries.items(), key=lambda item: item[1].accessed_at)
        self._entries = dict(ordered[-self._retain_entries :])
        self.logger.debug("Pruned extraction cache to %d entries", len(self._entries))

    def _save(self) -> None:
        self._prune()
        payload = {key: entry.to_dict() for key, entry in self._entries.items()}
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            self.logger.error("Failed to save extraction cache %s: %s", self._path, exc)

    def _load(self) -> Dict[str, CacheEntry]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.warning(
                "Failed to load extraction cache %s: %s. Starting fresh.", self._path, exc
            )
            return {}
        if not isinstance(data, dict):
            self.logger.warning("Extraction cache %s is not a mapping. Starting fresh.", self._path)
            return {}

        entries: Dict[str, CacheEntry] = {}
        for key, raw in data.items():
            entry = _entry_from_dict(raw)
            if isinstance(key, str) and entry is not None:
                entries[key] = entry
        return entries


def _entry_from_dict(payload: object) -> Optional[CacheEntry]:
    if not isinstance(payload, dict):
        return None
    classes = payload.get("classes")
    mtime = payload.get("mtime")
    accessed_at = payload.get("accessed_at", 0.0)
    if not isinstance(classes, list) or not all(isinstance(item, str) for item in classes):
        return None
    if not isinstance(mtime, (int, float)) or isinstance(mtime, bool):
        return None
    if not isinstance(accessed_at, (int, float)):
        accessed_at = 0.0
    return CacheEntry(classes=classes, mtime=float(mtime), accessed_at=float(accessed_at))


def _mtime(path: str) -> Optional[float]:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


__all__ = ["CACHE_FILENAME", "ExtractionCache"]
