"""Processed-webhook marker store."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from modules.webhooks.models import ProcessedWebhook

logger = structlog.get_logger(__name__)


class IProcessedWebhookRepository(ABC):
    @abstractmethod
    def exists(self, delivery_id: str) -> bool:
        """``True`` when this delivery was already processed."""

    @abstractmethod
    def mark(self, delivery_id: str, topic: str, shop_domain: str) -> None:
        """Record the delivery as processed (write-once)."""


class ProcessedWebhookDjangoRepository(IProcessedWebhookRepository):
    def exists(self, delivery_id: str) -> bool:
        return ProcessedWebhook.objects.filter(delivery_id=delivery_id).exists()

    def mark(self, delivery_id: str, topic: str, shop_domain: str) -> None:
        _, created = ProcessedWebhook.objects.get_or_create(
            delivery_id=delivery_id,
            defaults={"topic": topic, "shop_domain": shop_domain},
        )
        if not created:
            logger.info("webhook.marker_already_present", delivery_id=delivery_id)
