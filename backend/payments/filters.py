import django_filters
from django.db.models import Q
from .models import Payment, Expense, AccountTransaction, ACCOUNT_TYPE_CHOICES


class PaymentFilter(django_filters.FilterSet):
    """Filter payments by number/client search, status, method, client, document and date range"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Payment.STATUS_CHOICES)
    payment_method = django_filters.ChoiceFilter(choices=Payment.PAYMENT_METHOD_CHOICES)
    client = django_filters.NumberFilter(field_name='client_id')
    document = django_filters.CharFilter(method='filter_document', label='Document number')
    date_from = django_filters.DateFilter(field_name='date_paid', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='date_paid', lookup_expr='date__lte')

    class Meta:
        model = Payment
        fields = ['search', 'status', 'payment_method', 'client', 'document', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(payment_number__icontains=value) |
            Q(reference_number__icontains=value) |
            Q(paid_to__icontains=value) |
            Q(quotation_number__icontains=value) |
            Q(client__name__icontains=value)
        )

    def filter_document(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(paid_to=value) | Q(quotation_number=value))


class ExpenseFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.ChoiceFilter(field_name='expense_type', choices=Expense.TYPE_CHOICES)
    category = django_filters.NumberFilter(field_name='category_id')
    client = django_filters.NumberFilter(field_name='client_id')
    account = django_filters.ChoiceFilter(field_name='account_debited', choices=ACCOUNT_TYPE_CHOICES)
    date_from = django_filters.DateFilter(field_name='date_created', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='date_created', lookup_expr='date__lte')

    class Meta:
        model = Expense
        fields = ['search', 'type', 'category', 'client', 'account', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(expense_number__icontains=value) |
            Q(description__icontains=value) |
            Q(receipt_number__icontains=value) |
            Q(department__icontains=value) |
            Q(client__name__icontains=value)
        )


class AccountTransactionFilter(django_filters.FilterSet):
    account = django_filters.ChoiceFilter(field_name='account_type', choices=ACCOUNT_TYPE_CHOICES)
    type = django_filters.ChoiceFilter(field_name='transaction_type', choices=AccountTransaction.TRANSACTION_TYPE_CHOICES)
    reference_type = django_filters.ChoiceFilter(choices=AccountTransaction.REFERENCE_TYPE_CHOICES)
    reference_id = django_filters.NumberFilter()
    date_from = django_filters.DateFilter(field_name='transaction_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='transaction_date', lookup_expr='date__lte')

    class Meta:
        model = AccountTransaction
        fields = ['account', 'type', 'reference_type', 'reference_id', 'date_from', 'date_to']
