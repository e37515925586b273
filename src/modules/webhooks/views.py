"""Shopify webhook endpoint.

Plain Django view: webhooks authenticate with an HMAC signature, not with
a session or JWT, so DRF authentication and CSRF do not apply.
"""

from __future__ import annotations

import time

import structlog
from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from modules.webhooks.exceptions import (
    MarkerWriteFailed,
    WebhookAuthenticationError,
    WebhookNotConfigured,
    WebhookValidationError,
)
from modules.webhooks.services import default_webhook_service

logger = structlog.get_logger(__name__)


@csrf_exempt
@require_POST
def shopify_webhook(request: HttpRequest) -> JsonResponse:
    """POST /webhooks/shopify"""
    started = time.monotonic()
    try:
        outcome = default_webhook_service().handle(request.headers, request.body)
    except WebhookNotConfigured:
        response = JsonResponse({"detail": "Webhook secret not configured."}, status=500)
    except WebhookValidationError as exc:
        response = JsonResponse({"detail": str(exc)}, status=400)
    except WebhookAuthenticationError:
        response = JsonResponse({"detail": "Invalid signature."}, status=401)
    except MarkerWriteFailed:
        response = JsonResponse({"detail": "Failed to record delivery."}, status=500)
    else:
        response = JsonResponse(
            {"status": outcome.outcome, "shopify_id": outcome.shopify_id or None}
        )

    elapsed = time.monotonic() - started
    log = logger.bind(
        status_code=response.status_code, duration_ms=round(elapsed * 1000, 2)
    )
    if elapsed > settings.WEBHOOK_SOFT_DEADLINE_SECONDS:
        log.warning("webhook.soft_deadline_exceeded")
    else:
        log.info("webhook.responded")
    return response
