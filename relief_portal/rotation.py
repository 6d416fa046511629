"""News rotation.

Every display fetch reclassifies the stored feed against `now`:

- breaking: reported at most 60 minutes ago (inclusive)
- keep:     reported at most 24 hours ago (inclusive); everything else is pruned

Items whose `date` is missing or unparseable count as infinitely old, so they
are neither breaking nor kept. Future-dated items have a negative age and
land in both buckets.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import pydantic
from dateutil import parser as dtparser

from .errors import StorageWriteError, ValidationError
from .models import NewsItem, RotationResult
from .news_store import NewsStore, get_news_store

logger = logging.getLogger(__name__)

BREAKING_WINDOW = dt.timedelta(minutes=60)
KEEP_WINDOW = dt.timedelta(hours=24)

ArchiveFn = Callable[[List[Dict[str, Any]]], None]


def _aware(value: dt.datetime) -> dt.datetime:
    # naive timestamps are read as server-local time
    if value.tzinfo is None:
        return value.astimezone()
    return value


def parse_reported_at(raw: Any) -> Optional[dt.datetime]:
    if not isinstance(raw, str):
        return None
    raw = raw.strip()
    if not raw:
        return None
    try:
        return _aware(dtparser.parse(raw))
    except (ValueError, OverflowError, TypeError):
        return None


def classify(items: List[Any], now: dt.datetime) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Split items into (breaking, keep), preserving stored order."""
    now = _aware(now)
    breaking: List[Dict[str, Any]] = []
    keep: List[Dict[str, Any]] = []

    for idx, item in enumerate(items):
        reported = parse_reported_at(item.get("date")) if isinstance(item, dict) else None
        if reported is None:
            logger.warning("news item #%s has no usable date, dropped: %r", idx, item)
            continue

        age = now - reported
        if age <= BREAKING_WINDOW:
            breaking.append(item)
        if age <= KEEP_WINDOW:
            keep.append(item)

    return breaking, keep


def _archive_records(breaking: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for it in breaking:
        try:
            records.append(NewsItem.model_validate(it).archive_record())
        except pydantic.ValidationError as e:
            logger.warning("breaking item not archivable, skipped: %r (%s)", it, e)
    return records


def rotate_and_classify(
    now: Optional[dt.datetime] = None,
    *,
    store: Optional[NewsStore] = None,
    archive: Optional[ArchiveFn] = None,
) -> RotationResult:
    """Reclassify the stored feed, persist the kept items and hand breaking items to `archive`.

    Read/parse failures propagate (StorageReadError, ParseError). A failed write
    is logged and the classification is still returned. Archive dispatch
    failures are logged and never propagate.
    """
    store = store or get_news_store()
    now = now or dt.datetime.now(dt.timezone.utc)

    with store.locked():
        items = store.read()
        breaking, keep = classify(items, now)

        try:
            store.write(keep)
        except StorageWriteError as e:
            logger.error("news rotation write failed, returning unsaved result: %s (%s)", e, e.detail)

    pruned = len(items) - len(keep)
    logger.info(
        "news rotation now=%s total=%s breaking=%s kept=%s pruned=%s",
        _aware(now).isoformat(), len(items), len(breaking), len(keep), pruned,
    )

    if breaking and archive is not None:
        try:
            archive(_archive_records(breaking))
        except Exception as e:
            logger.error("breaking news archive dispatch failed (%s items): %s", len(breaking), e)

    return RotationResult(breaking=breaking, all=keep)


def append_news(item: NewsItem, *, store: Optional[NewsStore] = None) -> Dict[str, Any]:
    """Append one item to the stored feed; `date` defaults to now (UTC)."""
    store = store or get_news_store()
    data = item.model_dump()
    if data.get("date") and parse_reported_at(data["date"]) is None:
        raise ValidationError(f"Invalid news date: {data['date']}")
    if not data.get("date"):
        data["date"] = dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
    store.append(data)
    logger.info("news item appended title=%r date=%s", data.get("title"), data["date"])
    return data
