from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .datastore import DatastoreClient, get_datastore
from .errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

# Emergency kind -> table holding its first-aid tips.
TIP_TABLES = {
    "fire": "fire_tips",
    "accident": "accident_tips",
    "flood": "flood_tips",
    "collapse": "collapse_tips",
}

CONTACTS_TABLE = "emergency_contacts"
CONTACT_COLUMNS = "emergency_type, contact_number, description"


def list_tips(kind: str, client: Optional[DatastoreClient] = None) -> List[Dict[str, Any]]:
    table = TIP_TABLES.get((kind or "").strip().lower())
    if table is None:
        raise NotFoundError(f"unknown emergency type: {kind}")

    client = client or get_datastore()
    try:
        return client.select(table, "tip")
    except UpstreamError as e:
        logger.error("Error fetching %s tips: %s", kind, e)
        raise UpstreamError("Internal Server Error", status=e.status, detail=e.detail) from e


def list_emergency_contacts(client: Optional[DatastoreClient] = None) -> List[Dict[str, Any]]:
    client = client or get_datastore()
    try:
        return client.select(CONTACTS_TABLE, CONTACT_COLUMNS)
    except UpstreamError as e:
        logger.error("Error fetching emergency contacts: %s", e)
        raise UpstreamError("Error fetching emergency contacts", status=e.status, detail=e.detail) from e
