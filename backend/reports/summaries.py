"""
Report builders.

Each builder takes ISO date strings so its arguments make a stable cache key,
and returns plain JSON-ready data.
"""
import logging
from datetime import date
from decimal import Decimal

from django.db.models import Sum, Count, Max, Q
from django.utils import timezone

from backend.core.cache_utils import cached_query, REPORTS_CACHE_TTL, ACCOUNT_SUMMARY_CACHE_TTL
from backend.payments.models import Payment, Expense
from backend.purchasing.models import Purchase
from backend.sales.models import Quotation, SalesOrder, Invoice, CashSale

logger = logging.getLogger('backend.reports')

DOCUMENT_MODELS = [
    ('quotations', Quotation),
    ('sales_orders', SalesOrder),
    ('invoices', Invoice),
    ('cash_sales', CashSale),
]

ZERO = Decimal('0.00')


def _period(queryset, field, date_from, date_to):
    return queryset.filter(**{
        f'{field}__date__gte': date.fromisoformat(date_from),
        f'{field}__date__lte': date.fromisoformat(date_to),
    })


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports_sales_summary")
def build_sales_summary(date_from, date_to):
    """Count and value of every document type created in the period"""
    documents = {}
    for key, model in DOCUMENT_MODELS:
        queryset = _period(model.objects.exclude(status='cancelled'), 'date_created', date_from, date_to)
        totals = queryset.aggregate(count=Count('id'), value=Sum('grand_total'))
        by_status = {
            row['status']: row['count']
            for row in queryset.values('status').annotate(count=Count('id')).order_by('status')
        }
        documents[key] = {
            'count': totals['count'],
            'value': float(totals['value'] or ZERO),
            'by_status': by_status,
        }

    quotations = documents['quotations']['count']
    converted = _period(
        Quotation.objects.filter(sales_orders__isnull=False), 'date_created', date_from, date_to
    ).distinct().count()

    logger.info(f"Built sales summary {date_from}..{date_to}")
    return {
        'period': {'from': date_from, 'to': date_to},
        'documents': documents,
        'conversion_rate': round(converted / quotations * 100, 2) if quotations else 0.0,
    }


@cached_query(cache_ttl=ACCOUNT_SUMMARY_CACHE_TTL, key_prefix="reports_account_summary")
def build_account_summary(as_of):
    """
    Receivables per client: invoices, invoiced total, paid, balance and a status.

    A client is `credit` when it has paid more than invoiced, `overdue` when
    any open invoice is past its due date and `current` otherwise.
    """
    today = date.fromisoformat(as_of)
    open_statuses = ('paid', 'cancelled', 'converted_to_cash_sale')
    rows = (
        Invoice.objects.exclude(status='cancelled')
        .values('client_id', 'client__name')
        .annotate(
            total_invoices=Count('id'),
            total_amount=Sum('grand_total'),
            total_paid=Sum('paid_amount'),
            overdue_invoices=Count('id', filter=Q(
                due_date__lt=today, balance_amount__gt=0
            ) & ~Q(status__in=open_statuses)),
        )
        .order_by('client__name')
    )
    last_payments = dict(
        Payment.objects.filter(status='completed')
        .values('client_id').annotate(last=Max('date_paid'))
        .values_list('client_id', 'last')
    )

    accounts = []
    for row in rows:
        total_amount = row['total_amount'] or ZERO
        total_paid = row['total_paid'] or ZERO
        balance = total_amount - total_paid
        if balance < 0:
            account_status = 'credit'
        elif row['overdue_invoices']:
            account_status = 'overdue'
        else:
            account_status = 'current'
        last_payment = last_payments.get(row['client_id'])
        accounts.append({
            'client_id': row['client_id'],
            'client_name': row['client__name'],
            'total_invoices': row['total_invoices'],
            'total_amount': float(total_amount),
            'total_paid': float(total_paid),
            'balance': float(balance),
            'last_payment_date': last_payment.isoformat() if last_payment else None,
            'status': account_status,
        })

    return {
        'as_of': as_of,
        'accounts': accounts,
        'totals': {
            'total_amount': round(sum(account['total_amount'] for account in accounts), 2),
            'total_paid': round(sum(account['total_paid'] for account in accounts), 2),
            'balance': round(sum(account['balance'] for account in accounts), 2),
            'overdue_clients': sum(1 for account in accounts if account['status'] == 'overdue'),
        },
    }


@cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix="reports_financial_summary")
def build_financial_summary(date_from, date_to):
    """Revenue (completed payments plus cash sale takings), expenses and net profit"""
    payments = _period(Payment.objects.filter(status='completed'), 'date_paid', date_from, date_to)
    payment_revenue = payments.aggregate(total=Sum('amount'))['total'] or ZERO

    cash_sales = _period(CashSale.objects.filter(status='completed'), 'date_created', date_from, date_to)
    cash_sale_revenue = cash_sales.aggregate(total=Sum('amount_paid'))['total'] or ZERO

    expenses = _period(Expense.objects.all(), 'date_created', date_from, date_to)
    expense_totals = {
        row['expense_type']: row['total'] or ZERO
        for row in expenses.values('expense_type').annotate(total=Sum('amount'))
    }
    total_expenses = sum(expense_totals.values(), ZERO)

    purchases = Purchase.objects.exclude(status='cancelled').filter(
        purchase_date__gte=date.fromisoformat(date_from),
        purchase_date__lte=date.fromisoformat(date_to),
    )
    total_purchases = purchases.aggregate(total=Sum('total_amount'))['total'] or ZERO

    revenue = payment_revenue + cash_sale_revenue
    net_profit = revenue - total_expenses

    logger.info(f"Built financial summary {date_from}..{date_to}: revenue {revenue}, expenses {total_expenses}")
    return {
        'period': {'from': date_from, 'to': date_to},
        'revenue': {
            'payments': float(payment_revenue),
            'cash_sales': float(cash_sale_revenue),
            'total': float(revenue),
        },
        'expenses': {
            'client': float(expense_totals.get('client', ZERO)),
            'company': float(expense_totals.get('company', ZERO)),
            'total': float(total_expenses),
        },
        'purchases': float(total_purchases),
        'net_profit': float(net_profit),
        'generated_at': timezone.now().isoformat(),
    }
