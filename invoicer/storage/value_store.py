from __future__ import annotations
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Union

_registry_lock = threading.Lock()
_file_locks: Dict[str, threading.Lock] = {}


def atomic_write_text(path: Path, text: str) -> None:
    """Temp file in the same directory, then os.replace: readers never see a half-written file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def _lock_for(path: Path) -> threading.Lock:
    """One lock per file, shared by every store pointing at that file."""
    key = str(path.resolve())
    with _registry_lock:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = threading.Lock()
        return lock


class JsonValueStore:
    """
    A single JSON value on disk (a counter, a small object...).
    read() raises on I/O or decode errors; callers decide how to degrade.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def _read_unlocked(self, default: Any) -> Any:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return default

    def _write_unlocked(self, value: Any) -> None:
        atomic_write_text(self.path, json.dumps(value, ensure_ascii=False, indent=2))

    def read(self, default: Any = None) -> Any:
        with self._lock:
            return self._read_unlocked(default)

    def write(self, value: Any) -> None:
        with self._lock:
            self._write_unlocked(value)

    def update(self, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Read-modify-write under the file lock; returns the new value."""
        with self._lock:
            new_value = fn(self._read_unlocked(default))
            self._write_unlocked(new_value)
            return new_value


class InMemoryValueStore:
    """Same interface as JsonValueStore, for tests and throwaway sessions."""

    def __init__(self, value: Any = None):
        self._value = value
        self._lock = threading.Lock()

    def read(self, default: Any = None) -> Any:
        with self._lock:
            return default if self._value is None else self._value

    def write(self, value: Any) -> None:
        with self._lock:
            self._value = value

    def update(self, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._lock:
            self._value = fn(default if self._value is None else self._value)
            return self._value
