"""
Tests for archive dispatch and the queue worker.

All Redis I/O is replaced with MagicMock; no live Redis required.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import BackgroundTasks

from relief_portal import worker
from relief_portal.archive import ArchiveDispatcher, archive_records, recent_archive_errors
from relief_portal.config import settings
from relief_portal.errors import UpstreamError

RECORD = {"title": "A", "content": "A body", "reported_at": "2026-10-16T11:30:00+00:00"}


@pytest.fixture
def mock_redis():
    with patch("relief_portal.archive.get_redis") as get_redis:
        instance = MagicMock()
        get_redis.return_value = instance
        yield instance


def test_background_mode_schedules_task(fake_datastore):
    tasks = BackgroundTasks()

    ArchiveDispatcher("background").dispatch([RECORD], tasks)

    assert len(tasks.tasks) == 1
    fake_datastore.insert.assert_not_called()


def test_background_mode_without_tasks_inserts_inline(fake_datastore):
    ArchiveDispatcher("background").dispatch([RECORD])
    fake_datastore.insert.assert_called_once_with(settings.archive_table, [RECORD])


def test_off_mode_drops_records(fake_datastore, mock_redis):
    tasks = BackgroundTasks()

    ArchiveDispatcher("off").dispatch([RECORD], tasks)

    assert tasks.tasks == []
    fake_datastore.insert.assert_not_called()
    mock_redis.pipeline.assert_not_called()


def test_queue_mode_pushes_each_record(mock_redis):
    pipe = mock_redis.pipeline.return_value
    second = dict(RECORD, title="B")

    ArchiveDispatcher("queue").dispatch([RECORD, second])

    assert pipe.lpush.call_count == 2
    key, payload = pipe.lpush.call_args_list[0].args
    assert key == settings.archive_queue_key
    assert json.loads(payload) == RECORD
    pipe.execute.assert_called_once()


def test_empty_dispatch_does_nothing(fake_datastore, mock_redis):
    ArchiveDispatcher("queue").dispatch([])
    ArchiveDispatcher("background").dispatch([])
    mock_redis.pipeline.assert_not_called()
    fake_datastore.insert.assert_not_called()


def test_archive_records_logs_failure(fake_datastore, caplog):
    fake_datastore.insert.side_effect = UpstreamError("refused")

    assert archive_records([RECORD]) is False
    assert any("archive insert failed" in r.getMessage() for r in caplog.records)


def test_recent_archive_errors(mock_redis):
    mock_redis.lrange.return_value = [json.dumps({"record": RECORD, "error": "x", "at": 1}), "not json"]

    items = recent_archive_errors(limit=10)

    mock_redis.lrange.assert_called_once_with(settings.archive_errors_key, -10, -1)
    assert items == [{"record": RECORD, "error": "x", "at": 1}]


# ── worker ───────────────────────────────────────────────────────────────────

def test_worker_inserts_record(fake_datastore):
    with patch("relief_portal.worker.push_error") as push_error:
        assert worker.process_payload(json.dumps(RECORD)) is True
    fake_datastore.insert.assert_called_once_with(settings.archive_table, [RECORD])
    push_error.assert_not_called()


def test_worker_records_insert_failure(fake_datastore):
    fake_datastore.insert.side_effect = UpstreamError("refused")

    with patch("relief_portal.worker.push_error") as push_error:
        assert worker.process_payload(json.dumps(RECORD)) is False

    push_error.assert_called_once_with(RECORD, "refused")


@pytest.mark.parametrize("payload", ["{broken", "[1, 2]"])
def test_worker_rejects_malformed_payload(fake_datastore, payload):
    with patch("relief_portal.worker.push_error") as push_error:
        assert worker.process_payload(payload) is False

    push_error.assert_called_once()
    fake_datastore.insert.assert_not_called()


def test_push_error_caps_list(mock_redis):
    from relief_portal.archive import push_error

    push_error(RECORD, "refused")

    key = settings.archive_errors_key
    mock_redis.rpush.assert_called_once()
    mock_redis.ltrim.assert_called_once_with(key, -200, -1)
    mock_redis.expire.assert_called_once_with(key, 60 * 60 * 12)
