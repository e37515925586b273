"""Product API views.

Exposes the ``ProductService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.products.dtos import SaveProductDTO
from modules.products.exceptions import ProductNotFound
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.serializers import ProductSerializer
from modules.products.services import default_product_service


class ProductViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for the product catalogue.

    Uses ``ProductService`` (DIP).  Does **not** extend ``ModelViewSet``:
    all ORM access goes through the service/repository layer.
    """

    filterset_class = ProductFilter
    search_fields = ["title", "description", "variants__sku"]
    ordering_fields = ["title", "status", "created_at", "updated_at"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = default_product_service()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_products()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(product).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        try:
            dto = SaveProductDTO.model_validate(dict(request.data))
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        product = self._service.save_product(dto)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/products/{pk}/ (full replacement, variants included)."""
        return self._save(pk, dict(request.data))

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/

        Missing fields keep their stored values; a supplied ``variants``
        list still replaces every variant.
        """
        try:
            current = self._service.get_product(pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        data = {
            key: value
            for key, value in ProductSerializer(current).data.items()
            if key in SaveProductDTO.model_fields
        }
        data.update(request.data)
        return self._save(pk, data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        try:
            self._service.delete_product(pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _save(self, pk: str | None, data: dict) -> Response:
        try:
            dto = SaveProductDTO.model_validate(data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            product = self._service.save_product(dto, product_id=pk)
        except ProductNotFound:
            return Response(
                {"detail": "Product not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ProductSerializer(product).data)
