"""Order ingestion use cases.

Shared by the webhook intake and the bulk synchronizer:

- ``ingest`` normalizes one raw order and stages its upsert in a batch
  owned by the caller; it never commits.
- ``ingest_one`` is the single-order path (one batch, committed at once).
- ``sync_recent_orders`` pulls one page from the storefront list API and
  commits every order in a single batch.
- ``clear_orders`` removes every mirrored order in a single batch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional

import structlog

from modules.core.batch import WriteBatch
from modules.core.exceptions import PersistenceError
from modules.orders.constants import ErrorCode
from modules.orders.dtos import ClearResult, OrderRecord, SyncResult
from modules.orders.exceptions import InvalidOrderPayload
from modules.orders.normalizer import normalize
from modules.storefront.exceptions import StorefrontError

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.storefront.client import IStorefrontClient

logger = structlog.get_logger(__name__)


class OrderIngestionService:
    """Application service for bringing storefront orders into the store.

    Receives the repository and the storefront client via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        storefront: IStorefrontClient,
    ) -> None:
        self._order_repo = order_repository
        self._storefront = storefront

    # ------------------------------------------------------------------
    # Single order
    # ------------------------------------------------------------------

    def ingest(
        self,
        raw: Mapping[str, Any],
        batch: WriteBatch,
        force_status: Optional[str] = None,
    ) -> OrderRecord:
        """Normalize *raw* and stage its upsert in *batch*.

        Raises:
            InvalidOrderPayload: *raw* has no usable id or is malformed.
        """
        record = normalize(raw)
        self._order_repo.stage_upsert(record, batch, force_status=force_status)
        logger.debug("order.ingest_staged", shopify_id=record.shopify_id, batch=batch.label)
        return record

    def ingest_one(
        self, raw: Mapping[str, Any], force_status: Optional[str] = None
    ) -> OrderRecord:
        """Ingest a single order and commit immediately.

        Raises:
            InvalidOrderPayload: *raw* has no usable id or is malformed.
            PersistenceError: the upsert could not be written.
        """
        batch = WriteBatch(label="ingest-one")
        record = self.ingest(raw, batch, force_status=force_status)
        batch.commit()
        return record

    # ------------------------------------------------------------------
    # Bulk synchronizer
    # ------------------------------------------------------------------

    def sync_recent_orders(self, limit: int = 50) -> SyncResult:
        """Fetch the most recent orders and upsert them in one batch."""
        log = logger.bind(limit=limit)
        log.info("order.sync_started")

        try:
            raw_orders = self._storefront.list_orders(limit=limit)
        except StorefrontError as exc:
            log.error("order.sync_fetch_failed", error=str(exc))
            return SyncResult(
                success=False,
                message=f"Failed to fetch orders from the storefront: {exc}",
                error_code=ErrorCode.STOREFRONT_ERROR,
            )

        batch = WriteBatch(label="order-sync")
        failed = 0
        for raw in raw_orders:
            try:
                self.ingest(raw, batch)
            except InvalidOrderPayload as exc:
                failed += 1
                log.warning("order.sync_item_skipped", error=str(exc))

        staged = len(batch)
        try:
            batch.commit()
        except PersistenceError as exc:
            log.error("order.sync_commit_failed", error=str(exc), staged=staged)
            return SyncResult(
                success=False,
                synced=0,
                failed=len(raw_orders),
                message=f"Sync failed while saving orders: {exc}",
                error_code=ErrorCode.PERSISTENCE_ERROR,
            )

        log.info("order.sync_completed", synced=staged, failed=failed)
        return SyncResult(
            success=True,
            synced=staged,
            failed=failed,
            message=f"Synced {staged} orders ({failed} skipped).",
        )

    # ------------------------------------------------------------------
    # Clear
    # ------------------------------------------------------------------

    def clear_orders(self) -> ClearResult:
        """Delete every mirrored order in a single batch."""
        keys = self._order_repo.keys()
        if not keys:
            logger.info("order.clear_nothing_to_delete")
            return ClearResult(success=True, deleted=0, message="No orders to delete.")

        batch = WriteBatch(label="order-clear")
        for key in keys:
            self._order_repo.stage_delete(key, batch)
        self._order_repo.stage_cleared_notice(len(keys), batch)

        try:
            batch.commit()
        except PersistenceError as exc:
            logger.error("order.clear_failed", error=str(exc), count=len(keys))
            return ClearResult(
                success=False,
                message=f"Failed to delete orders: {exc}",
                error_code=ErrorCode.PERSISTENCE_ERROR,
            )

        logger.warning("order.cleared", deleted=len(keys))
        return ClearResult(
            success=True, deleted=len(keys), message=f"Deleted {len(keys)} orders."
        )


def default_ingestion_service() -> OrderIngestionService:
    """Service wired with the production repository and storefront client."""
    from modules.orders.repositories.django_repository import OrderDjangoRepository
    from modules.storefront.client import ShopifyClient

    return OrderIngestionService(
        order_repository=OrderDjangoRepository(),
        storefront=ShopifyClient.from_settings(),
    )
