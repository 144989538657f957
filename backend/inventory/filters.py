import django_filters
from django.db.models import Q
from .models import StockItem


class StockItemFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    status = django_filters.ChoiceFilter(choices=StockItem.STATUS_CHOICES)
    supplier = django_filters.NumberFilter(field_name='supplier_id')

    class Meta:
        model = StockItem
        fields = ['search', 'category', 'status', 'supplier']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(sku__icontains=value) |
            Q(description__icontains=value)
        )
