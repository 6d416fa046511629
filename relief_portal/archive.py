from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks

from .config import settings
from .datastore import DatastoreClient, get_datastore
from .redis_client import get_redis

logger = logging.getLogger(__name__)

ERRORS_KEEP = 200
ERRORS_TTL = 60 * 60 * 12


def archive_records(records: List[Dict[str, Any]], client: Optional[DatastoreClient] = None) -> bool:
    """Insert breaking-news records into the archival table. Sent once, never retried."""
    if not records:
        return True
    client = client or get_datastore()
    try:
        client.insert(settings.archive_table, records)
    except Exception as e:
        logger.error("archive insert failed table=%s records=%s: %s", settings.archive_table, len(records), e)
        return False
    logger.info("archived %s breaking news items into %s", len(records), settings.archive_table)
    return True


def push_error(record: Dict[str, Any], error: str) -> None:
    r = get_redis()
    key = settings.archive_errors_key
    r.rpush(key, json.dumps({"record": record, "error": error, "at": int(time.time())}, ensure_ascii=False))
    r.ltrim(key, -ERRORS_KEEP, -1)
    r.expire(key, ERRORS_TTL)


def recent_archive_errors(limit: int = 50) -> List[Dict[str, Any]]:
    r = get_redis()
    items = r.lrange(settings.archive_errors_key, -max(1, int(limit)), -1)
    out = []
    for x in items:
        try:
            out.append(json.loads(x))
        except ValueError:
            logger.warning("unreadable archive error entry skipped: %r", x)
    return out


class ArchiveDispatcher:
    """Hands breaking-news records off the request path.

    background: FastAPI background task, runs after the response is sent.
    queue:      LPUSH to a Redis list consumed by `python -m relief_portal.worker`.
    off:        records are dropped.
    """

    def __init__(self, mode: Optional[str] = None):
        self.mode = (mode or settings.archive_mode or "background").strip().lower()

    def dispatch(self, records: List[Dict[str, Any]], background_tasks: Optional[BackgroundTasks] = None) -> None:
        if not records:
            return
        if self.mode == "off":
            logger.debug("archive disabled, %s records dropped", len(records))
            return
        if self.mode == "queue":
            self._enqueue(records)
            return
        if background_tasks is None:
            archive_records(records)
            return
        background_tasks.add_task(archive_records, records)

    def _enqueue(self, records: List[Dict[str, Any]]) -> None:
        r = get_redis()
        pipe = r.pipeline()
        for rec in records:
            pipe.lpush(settings.archive_queue_key, json.dumps(rec, ensure_ascii=False))
        pipe.execute()
        logger.info("queued %s breaking news items on %s", len(records), settings.archive_queue_key)
