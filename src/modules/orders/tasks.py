"""Background tasks of the orders module."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.orders.ingestion import default_ingestion_service

logger = structlog.get_logger(__name__)


@shared_task(name="orders.sync_storefront_orders")
def sync_storefront_orders(limit=None):
    """Periodic storefront sync (scheduled by ``CELERY_BEAT_SCHEDULE``)."""
    page_size = limit or settings.ORDER_SYNC_PAGE_SIZE
    result = default_ingestion_service().sync_recent_orders(limit=page_size)
    logger.info(
        "order.sync_task_finished",
        success=result.success,
        synced=result.synced,
        failed=result.failed,
    )
    return result.model_dump(mode="json")
