import django_filters

from modules.carriers.constants import Carrier
from modules.orders.constants import AppStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    app_status = django_filters.ChoiceFilter(choices=AppStatus.choices)
    carrier = django_filters.ChoiceFilter(choices=Carrier.choices)
    financial_status = django_filters.CharFilter(
        field_name="financial_status", lookup_expr="iexact"
    )
    has_awb = django_filters.BooleanFilter(
        field_name="awb_number", lookup_expr="isnull", exclude=True
    )
    placed_after = django_filters.DateFilter(
        field_name="shopify_created_at", lookup_expr="date__gte"
    )
    placed_before = django_filters.DateFilter(
        field_name="shopify_created_at", lookup_expr="date__lte"
    )

    class Meta:
        model = Order
        fields = [
            "app_status",
            "carrier",
            "financial_status",
            "has_awb",
            "placed_after",
            "placed_before",
        ]
