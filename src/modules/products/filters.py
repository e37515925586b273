import django_filters

from modules.products.models import Product, ProductSource, ProductStatus


class ProductFilter(django_filters.FilterSet):
    title = django_filters.CharFilter(field_name="title", lookup_expr="icontains")
    sku = django_filters.CharFilter(method="filter_sku")
    status = django_filters.ChoiceFilter(choices=ProductStatus.choices)
    source = django_filters.ChoiceFilter(choices=ProductSource.choices)

    class Meta:
        model = Product
        fields = ["title", "sku", "status", "source"]

    def filter_sku(self, queryset, name, value):
        return queryset.filter(variants__sku__iexact=value.strip()).distinct()
