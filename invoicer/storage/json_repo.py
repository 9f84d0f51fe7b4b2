from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .value_store import atomic_write_text

logger = logging.getLogger(__name__)


def _json_default(o: Any) -> Any:
    if isinstance(o, (date, datetime)):
        return o.isoformat()
    return str(o)


def _dumps(rows: Iterable[Mapping[str, Any]]) -> str:
    return json.dumps([dict(r) for r in rows], ensure_ascii=False, indent=2, default=_json_default)


class JsonListRepository:
    """
    Ordered list of records in one JSON file, index 0 = most recent.

    The whole list is rewritten on every change. A rewrite with identical
    content is a no-op; otherwise the previous content is kept as
    ``<name>.<timestamp>.bak.json`` (the newest ``keep_backups`` survive).
    A file that no longer parses is copied to ``<name>.corrupt.json`` and
    reads as an empty list.
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        entity_name: str = "entry",
        *,
        keep_backups: int = 5,
    ) -> None:
        self.filepath = Path(filepath)
        self.entity_name = entity_name
        self.keep_backups = max(0, int(keep_backups))
        self._lock = threading.RLock()

    # ---------------- reading ---------------- #

    def _current_text(self) -> Optional[str]:
        try:
            return self.filepath.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _set_aside(self, text: str) -> None:
        target = self.filepath.with_suffix(".corrupt.json")
        logger.warning("Corrupt %s file %s, copied to %s", self.entity_name, self.filepath, target)
        try:
            target.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error("Could not keep a copy of %s: %s", self.filepath, e)

    def list_all(self) -> List[Dict[str, Any]]:
        with self._lock:
            text = self._current_text()
            if text is None:
                return []
            try:
                rows = json.loads(text)
            except ValueError:
                self._set_aside(text)
                return []
            return rows if isinstance(rows, list) else []

    # ---------------- writing ---------------- #

    def _keep_backup(self, previous: str) -> None:
        stem = self.filepath.stem
        ts = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
        (self.filepath.parent / f"{stem}.{ts}.bak.json").write_text(previous, encoding="utf-8")
        backups = sorted(self.filepath.parent.glob(f"{stem}.*.bak.json"))
        for old in backups[: max(0, len(backups) - self.keep_backups)]:
            old.unlink(missing_ok=True)

    def replace_all(self, rows: Iterable[Mapping[str, Any]]) -> None:
        text = _dumps(rows)
        with self._lock:
            previous = self._current_text()
            if previous == text:
                return
            if previous is not None and self.keep_backups:
                self._keep_backup(previous)
            atomic_write_text(self.filepath, text)

    def replace_at(self, index: int, record: Mapping[str, Any]) -> None:
        with self._lock:
            rows = self.list_all()
            if not 0 <= index < len(rows):
                raise IndexError(f"{self.entity_name} index {index} out of range")
            rows[index] = dict(record)
            self.replace_all(rows)


class InMemoryListRepository:
    """Same interface, no file."""

    def __init__(self, rows: Iterable[Mapping[str, Any]] = ()):
        self._text = _dumps(rows)

    def list_all(self) -> List[Dict[str, Any]]:
        return json.loads(self._text)

    def replace_all(self, rows: Iterable[Mapping[str, Any]]) -> None:
        self._text = _dumps(rows)

    def replace_at(self, index: int, record: Mapping[str, Any]) -> None:
        rows = self.list_all()
        if not 0 <= index < len(rows):
            raise IndexError(f"entry index {index} out of range")
        rows[index] = dict(record)
        self._text = _dumps(rows)
