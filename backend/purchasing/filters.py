import django_filters
from django.db.models import Q
from .models import Purchase


class PurchaseFilter(django_filters.FilterSet):
    """
    Purchase list filters.

    `type` splits credit purchases from those paid up front, `view` splits
    purchases made for a client from general stock purchases.
    """
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Purchase.STATUS_CHOICES)
    payment_status = django_filters.ChoiceFilter(choices=Purchase.PAYMENT_STATUS_CHOICES)
    supplier = django_filters.NumberFilter(field_name='supplier_id')
    client = django_filters.NumberFilter(field_name='client_id')
    type = django_filters.CharFilter(method='filter_type')
    view = django_filters.CharFilter(method='filter_view')
    date_from = django_filters.DateFilter(field_name='purchase_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='purchase_date', lookup_expr='lte')

    class Meta:
        model = Purchase
        fields = ['search', 'status', 'payment_status', 'supplier', 'client', 'type', 'view', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(purchase_order_number__icontains=value) |
            Q(supplier__name__icontains=value) |
            Q(client__name__icontains=value) |
            Q(notes__icontains=value)
        )

    def filter_type(self, queryset, name, value):
        if value == 'credit':
            return queryset.filter(payment_method='credit')
        if value == 'cash':
            return queryset.exclude(payment_method='credit')
        return queryset

    def filter_view(self, queryset, name, value):
        if value == 'client':
            return queryset.filter(client__isnull=False)
        if value == 'general':
            return queryset.filter(client__isnull=True)
        return queryset
