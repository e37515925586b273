"""Shopify webhook intake.

``WebhookService.handle`` runs the whole intake for one delivery:

1. secret configured, else ``WebhookNotConfigured``;
2. required headers present, else ``WebhookValidationError``;
3. HMAC of the raw body matches, else ``WebhookAuthenticationError``
   (the body is never parsed before this point);
4. body is a JSON object, else ``WebhookValidationError``;
5. already-processed deliveries are acknowledged without side effects;
6. order topics are ingested (``orders/cancelled`` also requests
   CANCELLED), other topics are acknowledged and ignored;
7. the delivery is marked processed after a successful upsert.

Processing failures are logged and acknowledged; only a failed marker
write surfaces as ``MarkerWriteFailed``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping

import structlog
from django.db import DatabaseError

from modules.orders.constants import AppStatus, WebhookTopic
from modules.webhooks.exceptions import (
    MarkerWriteFailed,
    WebhookAuthenticationError,
    WebhookNotConfigured,
    WebhookValidationError,
)
from modules.webhooks.signature import verify_signature

if TYPE_CHECKING:
    from modules.orders.ingestion import OrderIngestionService
    from modules.webhooks.repository import IProcessedWebhookRepository

logger = structlog.get_logger(__name__)

HMAC_HEADER = "X-Shopify-Hmac-Sha256"
TOPIC_HEADER = "X-Shopify-Topic"
SHOP_HEADER = "X-Shopify-Shop-Domain"
DELIVERY_HEADER = "X-Shopify-Webhook-Id"
REQUIRED_HEADERS = (HMAC_HEADER, TOPIC_HEADER, SHOP_HEADER, DELIVERY_HEADER)


class Outcome:
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    FAILED = "processing_failed"


@dataclass(frozen=True)
class WebhookOutcome:
    """Acknowledged delivery (always answered with 200)."""

    outcome: str
    delivery_id: str
    topic: str
    shopify_id: str = ""


@dataclass(frozen=True)
class DeliveryHeaders:
    signature: str
    topic: str
    shop_domain: str
    delivery_id: str

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> DeliveryHeaders:
        missing = [name for name in REQUIRED_HEADERS if not headers.get(name)]
        if missing:
            raise WebhookValidationError(f"Missing webhook headers: {', '.join(missing)}")
        return cls(
            signature=headers[HMAC_HEADER],
            topic=headers[TOPIC_HEADER],
            shop_domain=headers[SHOP_HEADER],
            delivery_id=headers[DELIVERY_HEADER],
        )


class WebhookService:
    """Verifies, deduplicates and routes storefront webhook deliveries."""

    def __init__(
        self,
        ingestion: OrderIngestionService,
        markers: IProcessedWebhookRepository,
        secret: str,
    ) -> None:
        self._ingestion = ingestion
        self._markers = markers
        self._secret = secret

    def handle(self, headers: Mapping[str, str], raw_body: bytes) -> WebhookOutcome:
        if not self._secret:
            logger.error("webhook.secret_missing")
            raise WebhookNotConfigured("SHOPIFY_WEBHOOK_SECRET is not set.")

        delivery = DeliveryHeaders.from_headers(headers)
        log = logger.bind(
            delivery_id=delivery.delivery_id,
            topic=delivery.topic,
            shop_domain=delivery.shop_domain,
        )

        if not verify_signature(raw_body, delivery.signature, self._secret):
            log.warning("webhook.signature_invalid", body_bytes=len(raw_body))
            raise WebhookAuthenticationError("Webhook signature mismatch.")

        payload = self._parse(raw_body)

        if self._markers.exists(delivery.delivery_id):
            log.info("webhook.duplicate_delivery")
            return WebhookOutcome(Outcome.DUPLICATE, delivery.delivery_id, delivery.topic)

        if delivery.topic not in WebhookTopic.ORDER_TOPICS:
            log.info("webhook.topic_ignored")
            return WebhookOutcome(Outcome.IGNORED, delivery.delivery_id, delivery.topic)

        force_status = (
            AppStatus.CANCELLED if delivery.topic == WebhookTopic.ORDER_CANCELLED else None
        )
        try:
            record = self._ingestion.ingest_one(payload, force_status=force_status)
        except Exception:
            log.exception("webhook.processing_failed")
            return WebhookOutcome(Outcome.FAILED, delivery.delivery_id, delivery.topic)

        try:
            self._markers.mark(delivery.delivery_id, delivery.topic, delivery.shop_domain)
        except DatabaseError as exc:
            log.error(
                "webhook.marker_write_failed",
                shopify_id=record.shopify_id,
                error=str(exc),
            )
            raise MarkerWriteFailed(str(exc)) from exc

        log.info("webhook.processed", shopify_id=record.shopify_id)
        return WebhookOutcome(
            Outcome.PROCESSED, delivery.delivery_id, delivery.topic, record.shopify_id
        )

    @staticmethod
    def _parse(raw_body: bytes) -> Dict[str, Any]:
        try:
            payload = json.loads(raw_body)
        except ValueError as exc:
            raise WebhookValidationError("Webhook body is not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise WebhookValidationError("Webhook body must be a JSON object.")
        return payload


def default_webhook_service() -> WebhookService:
    """Service wired with production collaborators and the configured secret."""
    from django.conf import settings

    from modules.orders.ingestion import default_ingestion_service
    from modules.webhooks.repository import ProcessedWebhookDjangoRepository

    return WebhookService(
        ingestion=default_ingestion_service(),
        markers=ProcessedWebhookDjangoRepository(),
        secret=settings.SHOPIFY_WEBHOOK_SECRET,
    )
