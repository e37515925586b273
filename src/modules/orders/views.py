"""Order API views.

Exposes the ingestion and fulfillment services via HTTP using a DRF
ViewSet.  Services return result DTOs; the view maps their ``error_code``
onto an HTTP status and never swallows unexpected exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.orders.constants import ErrorCode
from modules.orders.filters import OrderFilter
from modules.orders.ingestion import default_ingestion_service
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    BulkOrderIdsSerializer,
    ClearRequestSerializer,
    OrderListSerializer,
    OrderSerializer,
    SyncRequestSerializer,
)
from modules.orders.services import default_fulfillment_service

ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.STOREFRONT_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.CARRIER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.PERSISTENCE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _result_response(result) -> Response:
    """Render a service result; failures get the status of their error code."""
    if getattr(result, "success", False) is True:
        code = status.HTTP_200_OK
    else:
        code = ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return Response(result.model_dump(mode="json"), status=code)


class OrderViewSet(GenericViewSet):
    """ViewSet for mirrored orders and operator actions.

    Orders are addressed by ``shopify_id``.  Does **not** extend
    ``ModelViewSet``: orders are written only by ingestion and by the
    fulfillment service.
    """

    queryset = Order.objects.all()
    lookup_field = "shopify_id"
    lookup_value_regex = r"[^/]+"
    filterset_class = OrderFilter
    search_fields = ["shopify_id", "name", "customer__name", "awb_number"]
    ordering_fields = ["shopify_created_at", "created_at", "updated_at", "app_status"]
    ordering = ["-shopify_created_at", "-created_at"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repository = OrderDjangoRepository()
        self._fulfillment = default_fulfillment_service()
        self._ingestion = default_ingestion_service()

    def get_permissions(self):
        if self.action == "clear":
            return [IsAuthenticated(), IsAdminUser()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "sync":
            throttle_scope = "order_sync"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._repository.list()

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, shopify_id: str | None = None) -> Response:
        """GET /api/v1/orders/{shopify_id}/"""
        order = self._repository.get_by_key(shopify_id) if shopify_id else None
        if order is None:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Single-order actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, shopify_id: str | None = None) -> Response:
        """POST /api/v1/orders/{shopify_id}/confirm/"""
        return _result_response(self._fulfillment.confirm(shopify_id))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, shopify_id: str | None = None) -> Response:
        """POST /api/v1/orders/{shopify_id}/cancel/

        Cancels on the storefront first; the local status only changes
        when the storefront accepted the cancellation.
        """
        return _result_response(self._fulfillment.cancel(shopify_id))

    @action(detail=True, methods=["post"], url_path="assign-awb")
    def assign_awb(self, request: Request, shopify_id: str | None = None) -> Response:
        """POST /api/v1/orders/{shopify_id}/assign-awb/"""
        return _result_response(self._fulfillment.assign_waybill(shopify_id))

    # ------------------------------------------------------------------
    # Bulk actions
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"], url_path="bulk-confirm")
    def bulk_confirm(self, request: Request) -> Response:
        """POST /api/v1/orders/bulk-confirm/"""
        serializer = BulkOrderIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._fulfillment.bulk_confirm(serializer.validated_data["order_ids"])
        return Response(result.model_dump(mode="json"))

    @action(detail=False, methods=["post"], url_path="bulk-cancel")
    def bulk_cancel(self, request: Request) -> Response:
        """POST /api/v1/orders/bulk-cancel/"""
        serializer = BulkOrderIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._fulfillment.bulk_cancel(serializer.validated_data["order_ids"])
        return Response(result.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Synchronization / maintenance
    # ------------------------------------------------------------------

    @action(detail=False, methods=["post"])
    def sync(self, request: Request) -> Response:
        """POST /api/v1/orders/sync/"""
        serializer = SyncRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self._ingestion.sync_recent_orders(limit=serializer.validated_data["limit"])
        return _result_response(result)

    @action(detail=False, methods=["post"])
    def clear(self, request: Request) -> Response:
        """POST /api/v1/orders/clear/ (staff only, body ``{"confirm": true}``)."""
        serializer = ClearRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return _result_response(self._ingestion.clear_orders())
