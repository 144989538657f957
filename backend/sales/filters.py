import django_filters
from django.db.models import Q
from .models import Quotation, SalesOrder, Invoice, CashSale


class SalesDocumentFilter(django_filters.FilterSet):
    """Common filters: search by number or client, status, client and date range"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(field_name='status')
    client = django_filters.NumberFilter(field_name='client_id')
    date_from = django_filters.DateFilter(field_name='date_created', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='date_created', lookup_expr='date__lte')

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        number_field = queryset.model.NUMBER_FIELD
        return queryset.filter(
            Q(**{f'{number_field}__icontains': value}) |
            Q(client__name__icontains=value)
        )


class QuotationFilter(SalesDocumentFilter):
    class Meta:
        model = Quotation
        fields = ['search', 'status', 'client', 'date_from', 'date_to']


class SalesOrderFilter(SalesDocumentFilter):
    quotation_number = django_filters.CharFilter(field_name='original_quotation_number')

    class Meta:
        model = SalesOrder
        fields = ['search', 'status', 'client', 'date_from', 'date_to', 'quotation_number']


class InvoiceFilter(SalesDocumentFilter):
    quotation_number = django_filters.CharFilter(field_name='original_quotation_number')
    overdue = django_filters.BooleanFilter(method='filter_overdue')

    class Meta:
        model = Invoice
        fields = ['search', 'status', 'client', 'date_from', 'date_to', 'quotation_number', 'overdue']

    def filter_overdue(self, queryset, name, value):
        from django.utils import timezone
        overdue = Q(due_date__lt=timezone.localdate(), balance_amount__gt=0) & ~Q(
            status__in=['paid', 'cancelled', 'converted_to_cash_sale']
        )
        return queryset.filter(overdue) if value else queryset.exclude(overdue)


class CashSaleFilter(SalesDocumentFilter):
    payment_method = django_filters.CharFilter(field_name='payment_method')

    class Meta:
        model = CashSale
        fields = ['search', 'status', 'client', 'date_from', 'date_to', 'payment_method']
