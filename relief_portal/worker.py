from __future__ import annotations

import json
import logging
import time
from typing import Optional

from .archive import push_error
from .config import settings
from .datastore import DatastoreClient, get_datastore
from .logging_setup import setup_logging
from .redis_client import get_redis

logger = logging.getLogger("relief_portal.worker")


def process_payload(payload: str, client: Optional[DatastoreClient] = None) -> bool:
    """Insert one queued archive record. Failures go to the error list, not back on the queue."""
    try:
        record = json.loads(payload)
    except ValueError as e:
        logger.warning("malformed archive payload skipped: %s", e)
        push_error({"raw": payload[:500]}, f"malformed payload: {e}")
        return False
    if not isinstance(record, dict):
        logger.warning("archive payload is not an object, skipped")
        push_error({"raw": payload[:500]}, "payload is not an object")
        return False

    client = client or get_datastore()
    try:
        client.insert(settings.archive_table, [record])
    except Exception as e:
        logger.error("archive insert failed title=%r: %s", record.get("title"), e)
        push_error(record, str(e))
        return False

    logger.info("archived title=%r reported_at=%s", record.get("title"), record.get("reported_at"))
    return True


def main():
    setup_logging()
    r = get_redis()
    listen_key = settings.archive_queue_key
    logger.info("archive worker listening on %s table=%s", listen_key, settings.archive_table)

    while True:
        item = r.brpop([listen_key], timeout=5)
        if not item:
            continue

        _key, payload_b = item
        payload = payload_b.decode() if isinstance(payload_b, (bytes, bytearray)) else str(payload_b)
        process_payload(payload)
        time.sleep(0.05)

if __name__ == "__main__":
    main()
