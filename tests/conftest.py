"""
Shared fixtures.

The hosted datastore and Redis are replaced with MagicMock; news files live
under pytest's tmp_path.
"""
import datetime as dt
import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from relief_portal import datastore
from relief_portal.main import app
from relief_portal.config import settings
from relief_portal.datastore import DatastoreClient
from relief_portal.news_store import NewsStore

NOW = dt.datetime(2026, 10, 16, 12, 0, 0, tzinfo=dt.timezone.utc)


def news(title, age, description=None):
    """A stored news item reported `age` before NOW."""
    return {
        "title": title,
        "description": description if description is not None else f"{title} body",
        "date": (NOW - age).isoformat(),
    }


@pytest.fixture
def news_path(tmp_path, monkeypatch):
    path = tmp_path / "news.json"
    path.write_text("[]", encoding="utf-8")
    monkeypatch.setattr(settings, "news_path", str(path))
    return path


@pytest.fixture
def store(news_path):
    return NewsStore(news_path)


@pytest.fixture
def write_news(news_path):
    def _write(items):
        news_path.write_text(json.dumps(items), encoding="utf-8")
        return news_path
    return _write


@pytest.fixture
def fake_datastore(monkeypatch):
    """Patch the shared DatastoreClient with a MagicMock."""
    client = MagicMock(spec=DatastoreClient)
    client.select.return_value = []
    client.rpc.return_value = []
    client.insert.return_value = None
    monkeypatch.setattr(datastore, "_client", client)
    return client


@pytest.fixture
def api(news_path, fake_datastore, monkeypatch):
    monkeypatch.setattr(settings, "archive_mode", "background")
    with TestClient(app) as c:
        yield c
