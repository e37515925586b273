"""Outbox writer: persists domain events next to the change that raised them."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def record_event(event: DomainEvent, topic: str) -> OutboxEvent:
    """Write *event* to the outbox and publish it once the transaction commits.

    Must be called inside the transaction that performs the change.
    """
    outbox = OutboxEvent.objects.create(
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        payload=serialize_event_payload(event),
        topic=topic,
    )
    transaction.on_commit(lambda: _publish(outbox, event))
    logger.debug(
        "outbox.event_recorded",
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
    )
    return outbox


def _publish(outbox: OutboxEvent, event: DomainEvent) -> None:
    """Hand a committed event to the bus and record the delivery on its row."""
    try:
        event_bus.publish(event)
    except Exception as exc:
        logger.exception(
            "outbox.publish_failed",
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
        )
        outbox.mark_as_failed(str(exc))
        return
    outbox.mark_as_published()


def serialize_event_payload(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
