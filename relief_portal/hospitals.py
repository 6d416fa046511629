from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

import pydantic

from .datastore import DatastoreClient, get_datastore
from .errors import NotFoundError, UpstreamError, ValidationError
from .models import Hospital

logger = logging.getLogger(__name__)

HOSPITALS_TABLE = "hospitals"
NEAREST_HOSPITAL_RPC = "nearest_hospital"


def _feature(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    geom = row.get("geom") or {}
    coords = geom.get("coordinates") if isinstance(geom, dict) else None
    if not coords or len(coords) < 2:
        logger.warning("hospital id=%s has no point geometry, skipped", row.get("id"))
        return None
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [coords[0], coords[1]]},
        "properties": {"id": row.get("id"), "name": row.get("name")},
    }


def list_hospitals(client: Optional[DatastoreClient] = None) -> Dict[str, Any]:
    """All hospitals as a GeoJSON FeatureCollection ([lng, lat] points)."""
    client = client or get_datastore()
    try:
        rows = client.select(HOSPITALS_TABLE, "id, name, geom")
    except UpstreamError as e:
        logger.error("Database query error: %s", e)
        raise UpstreamError("Error fetching hospitals data", status=e.status, detail=e.detail) from e

    features: List[Dict[str, Any]] = []
    for row in rows:
        f = _feature(row)
        if f is not None:
            features.append(f)
    return {"type": "FeatureCollection", "features": features}


def _to_float(raw: Any) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        val = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(val):
        return None
    return val


def validate_coordinates(start_lat: Any, start_lng: Any) -> Tuple[float, float]:
    lat = _to_float(start_lat)
    lng = _to_float(start_lng)
    if lat is None or lng is None:
        raise ValidationError("Invalid start coordinates")
    if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        raise ValidationError("Invalid start coordinates")
    return lat, lng


def nearest_hospital(start_lat: Any, start_lng: Any, client: Optional[DatastoreClient] = None) -> Hospital:
    """Validate the start point, then delegate the search to the datastore."""
    lat, lng = validate_coordinates(start_lat, start_lng)
    client = client or get_datastore()

    try:
        rows = client.rpc(NEAREST_HOSPITAL_RPC, {"start_lat": lat, "start_lng": lng})
    except UpstreamError as e:
        logger.error("Error finding nearest hospital: %s", e)
        raise UpstreamError("Error finding nearest hospital", status=e.status, detail=e.detail) from e

    if not rows:
        raise NotFoundError("No hospitals found")

    row = rows[0]
    try:
        return Hospital(
            id=row.get("id"),
            name=row.get("name") or "",
            latitude=row.get("latitude"),
            longitude=row.get("longitude"),
        )
    except pydantic.ValidationError as e:
        logger.error("nearest hospital row unusable %r: %s", row, e)
        raise UpstreamError("Error finding nearest hospital", detail=str(e)) from e
