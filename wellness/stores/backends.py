# -*- coding: utf-8 -*-
"""Client stores — key/value persistence backends.

Keys follow ``<domain>:<partition>`` (``anon`` or a user id); legacy keys are the
bare domain name. Values are opaque strings (JSON documents in practice).
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol
from urllib.parse import quote, unquote

from ..config import settings
from ..errors import PersistenceError, StorageQuotaExceeded


class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryBackend:
    """Dict-backed backend. ``quota_bytes`` emulates a browser storage quota."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, *, quota_bytes: Optional[int] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
            if used + len(key) + len(value) > self.quota_bytes:
                raise StorageQuotaExceeded(f"quota of {self.quota_bytes} bytes exceeded writing {key!r}")
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data.keys())


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


class JsonFileBackend:
    """One UTF-8 file per key under ``root``."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = Path(root or settings.client_store_dir)

    def _path(self, key: str) -> Path:
        return self.root / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        fp = self._path(key)
        if not fp.exists():
            return None
        return fp.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        try:
            _ensure_dir(self.root)
            fp = self._path(key)
            tmp = fp.with_suffix(".tmp")
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(fp)
        except OSError as exc:
            raise PersistenceError(f"could not write {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        fp = self._path(key)
        if fp.exists():
            fp.unlink()

    def keys(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(unquote(fp.stem) for fp in self.root.glob("*.json"))
