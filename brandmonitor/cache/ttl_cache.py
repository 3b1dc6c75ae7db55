# coding: ascii
"""Expiring key/value cache, in memory with an optional JSON spill directory."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

LOGGER = logging.getLogger(__name__)


class CacheError(Exception):
    """Raised when a cache entry cannot be written."""


@dataclass
class _Entry:
    value: Any
    expires_at: Optional[float]

    def stale(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class TTLCache:
    """Cache whose entries expire ``ttl`` seconds after they are written.

    Values must be JSON-serialisable when ``cache_dir`` is set. The clock is
    injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        *,
        default_ttl: Optional[float] = 3600,
        cache_dir: Optional[Union[str, Path]] = None,
        time_func: Optional[Callable[[], float]] = None,
    ) -> None:
        self._default_ttl = default_ttl
        self._time = time_func or time.time
        self._entries: Dict[str, _Entry] = {}
        self._cache_dir = Path(cache_dir) if cache_dir else None
        if self._cache_dir is not None:
            self._cache_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str, default: Any = None) -> Any:
        now = self._time()
        entry = self._entries.get(key)
        if entry is None and self._cache_dir is not None:
            entry = self._read_file(key)
            if entry is not None:
                self._entries[key] = entry

        if entry is None:
            return default
        if entry.stale(now):
            self.invalidate(key)
            return default
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        entry = _Entry(value=value, expires_at=self._compute_expiry(ttl))
        self._entries[key] = entry
        if self._cache_dir is not None:
            self._write_file(key, entry)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key, _MISSING) is not _MISSING

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)
        if self._cache_dir is not None:
            self._file_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        self._entries.clear()
        if self._cache_dir is not None:
            for item in self._cache_dir.glob("*.json"):
                item.unlink(missing_ok=True)

    def _compute_expiry(self, ttl: Optional[float]) -> Optional[float]:
        if ttl is None:
            ttl = self._default_ttl
        if ttl is None or ttl <= 0:
            return None
        return self._time() + ttl

    def _file_for(self, key: str) -> Path:
        assert self._cache_dir is not None
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._cache_dir / f"{digest}.json"

    def _write_file(self, key: str, entry: _Entry) -> None:
        path = self._file_for(key)
        try:
            with path.open("w", encoding="utf-8") as handle:
                json.dump({"key": key, "value": entry.value, "expires_at": entry.expires_at}, handle)
        except (OSError, TypeError, ValueError) as exc:
            raise CacheError(f"Could not write cache file for '{key}'") from exc

    def _read_file(self, key: str) -> Optional[_Entry]:
        path = self._file_for(key)
        if not path.is_file():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError):
            LOGGER.warning("Ignoring unreadable cache file", extra={"path": str(path)})
            return None
        if payload.get("key") != key:
            return None
        return _Entry(value=payload.get("value"), expires_at=payload.get("expires_at"))


_MISSING = object()


__all__ = ["CacheError", "TTLCache"]
