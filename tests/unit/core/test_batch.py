"""Unit tests for WriteBatch.

Covers:
- Staged operations run only on commit, in order.
- All-or-nothing: a database error rolls back every staged write.
- Domain exceptions raised by a staged operation propagate unchanged.
- A batch cannot be reused after commit.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from django.db import DatabaseError

from modules.core.batch import WriteBatch
from modules.core.exceptions import PersistenceError
from modules.core.models import OutboxEvent

pytestmark = pytest.mark.unit


def _stage_outbox_row(batch: WriteBatch, aggregate_id: str) -> None:
    batch.add(
        f"outbox {aggregate_id}",
        lambda: OutboxEvent.objects.create(
            event_type="OrderIngested",
            payload={},
            aggregate_id=aggregate_id,
            topic="orders",
        ),
    )


class TestWriteBatch:
    def test_operations_run_only_on_commit(self):
        operation = MagicMock(return_value="done")
        batch = WriteBatch(label="t")
        batch.add("op", operation)

        operation.assert_not_called()
        assert len(batch) == 1

        assert batch.commit() == ["done"]
        operation.assert_called_once()
        assert batch.committed is True

    def test_operations_run_in_staging_order(self):
        calls = []
        batch = WriteBatch()
        batch.add("first", lambda: calls.append(1))
        batch.add("second", lambda: calls.append(2))
        batch.commit()
        assert calls == [1, 2]

    def test_empty_commit_is_a_noop(self):
        batch = WriteBatch()
        assert batch.commit() == []
        assert batch.committed is True

    def test_commit_writes_every_row(self):
        batch = WriteBatch()
        _stage_outbox_row(batch, "shp-1")
        _stage_outbox_row(batch, "shp-2")
        batch.commit()
        assert OutboxEvent.objects.filter(aggregate_id__in=["shp-1", "shp-2"]).count() == 2

    def test_database_error_rolls_back_everything(self):
        def broken():
            raise DatabaseError("disk full")

        batch = WriteBatch(label="broken")
        _stage_outbox_row(batch, "shp-1")
        batch.add("broken write", broken)

        with pytest.raises(PersistenceError, match="broken write"):
            batch.commit()

        assert not OutboxEvent.objects.filter(aggregate_id="shp-1").exists()
        assert batch.committed is False

    def test_domain_exception_propagates_and_rolls_back(self):
        class Rejected(Exception):
            pass

        def reject():
            raise Rejected("no")

        batch = WriteBatch()
        _stage_outbox_row(batch, "shp-1")
        batch.add("reject", reject)

        with pytest.raises(Rejected):
            batch.commit()

        assert not OutboxEvent.objects.filter(aggregate_id="shp-1").exists()

    def test_cannot_commit_twice(self):
        batch = WriteBatch()
        batch.commit()
        with pytest.raises(RuntimeError):
            batch.commit()

    def test_cannot_add_after_commit(self):
        batch = WriteBatch()
        batch.commit()
        with pytest.raises(RuntimeError):
            batch.add("late", lambda: None)
