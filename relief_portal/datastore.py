from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatastoreConfig:
    base_url: str
    api_key: str
    timeout_s: float = 15.0


def _default_config() -> DatastoreConfig:
    return DatastoreConfig(
        base_url=(settings.supabase_url or "").rstrip("/"),
        api_key=settings.supabase_key or "",
        timeout_s=settings.request_timeout,
    )


class DatastoreClient:
    """HTTP client for the hosted PostgREST endpoint.

    Reads (select, rpc) are retried on timeouts and network errors. Inserts
    are sent once. Every failure surfaces as UpstreamError.
    """

    def __init__(self, cfg: Optional[DatastoreConfig] = None, *, transport: Optional[httpx.BaseTransport] = None):
        self.cfg = cfg or _default_config()
        self._client = httpx.Client(
            base_url=self.cfg.base_url + "/rest/v1" if self.cfg.base_url else "http://datastore.invalid/rest/v1",
            timeout=httpx.Timeout(self.cfg.timeout_s, connect=self.cfg.timeout_s),
            headers={
                "apikey": self.cfg.api_key,
                "Authorization": f"Bearer {self.cfg.api_key}",
                "User-Agent": settings.user_agent,
            },
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=6.0),
        reraise=True,
    )
    def _read(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None, json: Any = None) -> httpx.Response:
        return self._client.request(method, path, params=params, json=json)

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if not self.cfg.base_url:
            raise UpstreamError("datastore URL is not configured")
        try:
            if kwargs.pop("retry", True):
                return self._read(method, path, **kwargs)
            return self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"datastore timeout for {method} {path}: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"datastore unavailable for {method} {path}: {e}") from e

    def _check(self, resp: httpx.Response) -> None:
        if resp.status_code >= 400:
            detail = None
            try:
                j = resp.json()
                detail = j.get("message") if isinstance(j, dict) else None
            except Exception:
                detail = (resp.text or "").strip()[:500]
            raise UpstreamError(
                f"datastore error {resp.status_code} for {resp.request.method} {resp.request.url.path}",
                status=resp.status_code,
                detail=detail,
            )

    def _rows(self, resp: httpx.Response) -> List[Dict[str, Any]]:
        self._check(resp)
        try:
            data = resp.json()
        except Exception as e:
            raise UpstreamError(f"datastore returned non-JSON response: {e}")
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise UpstreamError("datastore returned unexpected JSON shape")
        return data

    # --- PostgREST verbs ---

    def select(self, table: str, columns: str = "*") -> List[Dict[str, Any]]:
        resp = self._send("GET", f"/{table}", params={"select": columns})
        return self._rows(resp)

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        resp = self._send("POST", f"/rpc/{function}", json=params or {})
        return self._rows(resp)

    def insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        resp = self._send(
            "POST",
            f"/{table}",
            json=rows,
            headers={"Prefer": "return=minimal"},
            retry=False,
        )
        self._check(resp)


_client: Optional[DatastoreClient] = None


def get_datastore() -> DatastoreClient:
    global _client
    if _client is None:
        _client = DatastoreClient()
    return _client
