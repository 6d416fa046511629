from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .config import settings
from .errors import ParseError, StorageReadError, StorageWriteError


class NewsStore:
    """JSON-array file holding the current news feed.

    `locked()` serializes read-modify-write cycles within this process.
    Writes go to a sibling temp file and are moved into place with
    os.replace, so readers never see a half-written file. Other processes
    writing the same path are not coordinated.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator["NewsStore"]:
        with self._lock:
            yield self

    def read(self) -> List[Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise StorageReadError(detail=f"{self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ParseError(detail=f"{self.path}: {e}") from e
        if not isinstance(data, list):
            raise ParseError(detail=f"{self.path} does not contain a JSON array")
        return data

    def write(self, items: List[Any]) -> None:
        payload = json.dumps(items, ensure_ascii=False, indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            raise StorageWriteError(detail=f"{self.path}: {e}") from e

    def append(self, item: Dict[str, Any]) -> List[Any]:
        with self.locked():
            items = self.read()
            items.append(item)
            self.write(items)
            return items


_store: Optional[NewsStore] = None
_store_lock = threading.Lock()


def get_news_store() -> NewsStore:
    global _store
    with _store_lock:
        if _store is None or str(_store.path) != settings.news_path:
            _store = NewsStore(settings.news_path)
        return _store
