"""
Document progression: quotation -> sales order -> invoice / cash sale.

Progression is driven by the share of the originating quotation that has been
paid. Any completed payment turns a quotation into a sales order, the invoice
threshold turns the sales order into an invoice and full payment turns the
sales order (or its invoice) into a cash sale.

Every conversion runs in a transaction with the parent row locked and returns
the already existing child document when one is found, so running a
conversion twice never creates duplicates.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from backend.payments.models import Payment
from .models import (
    DOCUMENT_COPY_FIELDS, ITEM_MODELS, ITEM_PARENT_FIELDS,
    Quotation, SalesOrder, Invoice, CashSale,
)
from .totals import money

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_SETTINGS = {
    'INVOICE_PAYMENT_PERCENTAGE': 75,
    'CASH_SALE_PAYMENT_PERCENTAGE': 100,
    'INVOICE_DUE_DAYS': 30,
    'PAYMENT_MONITOR_ENABLED': True,
}

# Quotation statuses that still allow a fresh conversion
OPEN_QUOTATION_STATUSES = ('draft', 'pending', 'accepted')


class WorkflowError(Exception):
    """A conversion precondition is not met"""


@dataclass(frozen=True)
class PaymentSummary:
    has_payments: bool
    total_paid: Decimal
    payment_percentage: Decimal
    quotation_total: Decimal

    def as_dict(self):
        return {
            'has_payments': self.has_payments,
            'total_paid': str(self.total_paid),
            'payment_percentage': float(self.payment_percentage),
            'quotation_total': str(self.quotation_total),
        }


def workflow_setting(name):
    configured = getattr(settings, 'SALES_WORKFLOW', {}) or {}
    return configured.get(name, DEFAULT_WORKFLOW_SETTINGS[name])


def invoice_threshold():
    return Decimal(str(workflow_setting('INVOICE_PAYMENT_PERCENTAGE')))


def cash_sale_threshold():
    return Decimal(str(workflow_setting('CASH_SALE_PAYMENT_PERCENTAGE')))


def payment_percentage(total_paid, grand_total):
    """Paid share of `grand_total` in percent; 0 when the total is zero"""
    grand_total = Decimal(str(grand_total or 0))
    if grand_total <= 0:
        return Decimal('0')
    return (Decimal(str(total_paid or 0)) / grand_total) * 100


def completed_payments_for(quotation_number):
    return Payment.objects.filter(status='completed').filter(
        Q(quotation_number=quotation_number) | Q(paid_to=quotation_number)
    )


def check_payment_requirements(quotation_number, quotation_total=None):
    """
    Summarise completed payments made against a quotation number.

    The percentage is computed against `quotation_total` when given, otherwise
    against the grand total of the quotation with that number.
    """
    if quotation_total is None:
        quotation_total = Quotation.objects.filter(
            quotation_number=quotation_number
        ).values_list('grand_total', flat=True).first() or Decimal('0')

    payments = completed_payments_for(quotation_number) if quotation_number else Payment.objects.none()
    total_paid = payments.aggregate(total=Sum('amount'))['total'] or Decimal('0')

    return PaymentSummary(
        has_payments=payments.exists() and total_paid > 0,
        total_paid=money(total_paid),
        payment_percentage=payment_percentage(total_paid, quotation_total),
        quotation_total=money(quotation_total),
    )


def payment_summaries_for(quotations):
    """Payment summaries for many quotations at once, keyed by quotation number"""
    quotations = list(quotations)
    numbers = {quotation.quotation_number for quotation in quotations}
    totals = {number: Decimal('0') for number in numbers}
    counted = set()

    payments = Payment.objects.filter(status='completed').filter(
        Q(quotation_number__in=numbers) | Q(paid_to__in=numbers)
    ).values_list('quotation_number', 'paid_to', 'amount')
    for quotation_number, paid_to, amount in payments:
        for number in {quotation_number, paid_to} & numbers:
            totals[number] += amount or Decimal('0')
            counted.add(number)

    return {
        quotation.quotation_number: PaymentSummary(
            has_payments=quotation.quotation_number in counted and totals[quotation.quotation_number] > 0,
            total_paid=money(totals[quotation.quotation_number]),
            payment_percentage=payment_percentage(totals[quotation.quotation_number], quotation.grand_total),
            quotation_total=money(quotation.grand_total),
        )
        for quotation in quotations
    }


def summary_for_document(document):
    """Payment summary for any sales document, measured against its quotation"""
    if isinstance(document, Quotation):
        return check_payment_requirements(document.quotation_number, document.grand_total)

    quotation_number = document.original_quotation_number
    quotation_total = None
    if quotation_number:
        quotation_total = Quotation.objects.filter(
            quotation_number=quotation_number
        ).values_list('grand_total', flat=True).first()
    # Documents whose quotation is gone are measured against their own total
    if quotation_total is None:
        quotation_total = document.grand_total
    return check_payment_requirements(quotation_number, quotation_total)


def _copy_document(source, target_model, user=None, **extra):
    """Create a `target_model` document with the header and items of `source`"""
    values = {name: getattr(source, name) for name in DOCUMENT_COPY_FIELDS}
    values.update(extra)
    target = target_model(created_by=user if user and user.is_authenticated else None, **values)
    target.save()

    item_model = ITEM_MODELS[target_model]
    parent_field = ITEM_PARENT_FIELDS[target_model]
    item_model.objects.bulk_create([
        item_model(**{parent_field: target}, **item.copy_values())
        for item in source.items.all()
    ])
    return target


def _set_status(document, status):
    if document.status != status:
        document.status = status
        document.save(update_fields=['status', 'updated_at'])


def _touch_client(document):
    from backend.parties.models import RegisteredEntity
    RegisteredEntity.objects.filter(pk=document.client_id).update(last_transaction=timezone.now())


def find_sales_order(quotation):
    """Earliest sales order created from `quotation`, if any"""
    return SalesOrder.objects.filter(
        Q(quotation=quotation) | Q(original_quotation_number=quotation.quotation_number)
    ).order_by('date_created', 'id').first()


def invoice_status_for(paid_amount, grand_total):
    if paid_amount >= grand_total and grand_total > 0:
        return 'paid'
    if paid_amount > 0:
        return 'partially_paid'
    return 'pending'


def sync_invoice_payments(invoice, summary=None):
    """Refresh paid/balance amounts of an open invoice from the quotation's payments"""
    if invoice.status in ('cancelled', 'converted_to_cash_sale'):
        return invoice
    summary = summary or summary_for_document(invoice)
    paid_amount = summary.total_paid
    invoice.paid_amount = paid_amount
    invoice.balance_amount = money(invoice.grand_total - paid_amount)
    invoice.status = invoice_status_for(paid_amount, invoice.grand_total)
    invoice.save(update_fields=['paid_amount', 'balance_amount', 'status', 'updated_at'])
    return invoice


def proceed_to_sales_order(quotation, user=None):
    """Convert a quotation with at least one completed payment into a sales order"""
    with transaction.atomic():
        quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)

        existing = find_sales_order(quotation)
        if existing is not None:
            if quotation.status in OPEN_QUOTATION_STATUSES:
                _set_status(quotation, 'converted_to_sales_order')
            logger.info(f"Quotation {quotation.quotation_number} already has sales order {existing.order_number}")
            return existing

        if quotation.status not in OPEN_QUOTATION_STATUSES:
            raise WorkflowError(
                f"Quotation {quotation.quotation_number} is {quotation.get_status_display().lower()} "
                f"and cannot be converted to a sales order"
            )

        summary = check_payment_requirements(quotation.quotation_number, quotation.grand_total)
        if not summary.has_payments:
            raise WorkflowError(
                f"Quotation {quotation.quotation_number} has no completed payments; "
                f"a payment is required before creating a sales order"
            )

        order = _copy_document(
            quotation, SalesOrder, user=user,
            quotation=quotation,
            original_quotation_number=quotation.quotation_number,
            status='pending',
        )
        _set_status(quotation, 'converted_to_sales_order')
        _touch_client(order)

    logger.info(
        f"Quotation {quotation.quotation_number} converted to sales order {order.order_number} "
        f"({summary.payment_percentage:.1f}% paid)"
    )
    return order


def proceed_to_invoice(sales_order, user=None):
    """Convert a sales order into an invoice once the invoice threshold is paid"""
    with transaction.atomic():
        sales_order = SalesOrder.objects.select_for_update().get(pk=sales_order.pk)

        existing = sales_order.invoices.order_by('id').first()
        if existing is not None:
            logger.info(f"Sales order {sales_order.order_number} already has invoice {existing.invoice_number}")
            return existing

        if sales_order.status == 'cancelled':
            raise WorkflowError(f"Sales order {sales_order.order_number} is cancelled")

        summary = summary_for_document(sales_order)
        threshold = invoice_threshold()
        if summary.payment_percentage < threshold:
            raise WorkflowError(
                f"Invoice requires at least {threshold}% payment; "
                f"{sales_order.order_number} is {summary.payment_percentage:.1f}% paid"
            )

        paid_amount = summary.total_paid
        invoice = _copy_document(
            sales_order, Invoice, user=user,
            sales_order=sales_order,
            original_quotation_number=sales_order.original_quotation_number,
            due_date=timezone.localdate() + timedelta(days=int(workflow_setting('INVOICE_DUE_DAYS'))),
            paid_amount=paid_amount,
            balance_amount=money(sales_order.grand_total - paid_amount),
            status=invoice_status_for(paid_amount, sales_order.grand_total),
        )
        _set_status(sales_order, 'converted_to_invoice')
        _touch_client(invoice)

    logger.info(
        f"Sales order {sales_order.order_number} converted to invoice {invoice.invoice_number} "
        f"({summary.payment_percentage:.1f}% paid)"
    )
    return invoice


def _cash_sale_values(source):
    return {
        'amount_paid': source.grand_total,
        'change_amount': Decimal('0.00'),
        'balance_amount': Decimal('0.00'),
        'payment_method': 'cash',
        'status': 'completed',
    }


def _require_full_payment(document):
    summary = summary_for_document(document)
    threshold = cash_sale_threshold()
    if summary.payment_percentage < threshold:
        raise WorkflowError(
            f"Cash sale requires {threshold}% payment; "
            f"{document.number} is {summary.payment_percentage:.1f}% paid"
        )
    return summary


def proceed_to_cash_sale_from_sales_order(sales_order, user=None):
    """Convert a fully paid sales order into a cash sale"""
    with transaction.atomic():
        sales_order = SalesOrder.objects.select_for_update().get(pk=sales_order.pk)

        existing = sales_order.cash_sales.order_by('id').first()
        if existing is not None:
            logger.info(f"Sales order {sales_order.order_number} already has cash sale {existing.sale_number}")
            return existing

        if sales_order.status == 'cancelled':
            raise WorkflowError(f"Sales order {sales_order.order_number} is cancelled")

        invoice = sales_order.invoices.order_by('id').first()
        if invoice is not None:
            # The invoice is the live document once it exists
            return proceed_to_cash_sale_from_invoice(invoice, user=user)

        _require_full_payment(sales_order)

        cash_sale = _copy_document(
            sales_order, CashSale, user=user,
            quotation=sales_order.quotation,
            sales_order=sales_order,
            original_quotation_number=sales_order.original_quotation_number,
            original_order_number=sales_order.order_number,
            **_cash_sale_values(sales_order)
        )
        _set_status(sales_order, 'converted_to_cash_sale')
        _touch_client(cash_sale)

    logger.info(f"Sales order {sales_order.order_number} converted to cash sale {cash_sale.sale_number}")
    return cash_sale


def proceed_to_cash_sale_from_invoice(invoice, user=None):
    """Convert a fully paid invoice into a cash sale"""
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)

        existing = invoice.cash_sales.order_by('id').first()
        if existing is not None:
            logger.info(f"Invoice {invoice.invoice_number} already has cash sale {existing.sale_number}")
            return existing

        if invoice.status == 'cancelled':
            raise WorkflowError(f"Invoice {invoice.invoice_number} is cancelled")

        summary = _require_full_payment(invoice)

        sales_order = invoice.sales_order
        cash_sale = _copy_document(
            invoice, CashSale, user=user,
            quotation=sales_order.quotation if sales_order else None,
            sales_order=sales_order,
            invoice=invoice,
            original_quotation_number=invoice.original_quotation_number,
            original_order_number=sales_order.order_number if sales_order else '',
            original_invoice_number=invoice.invoice_number,
            **_cash_sale_values(invoice)
        )
        invoice.paid_amount = summary.total_paid
        invoice.balance_amount = money(invoice.grand_total - summary.total_paid)
        invoice.status = 'converted_to_cash_sale'
        invoice.save(update_fields=['paid_amount', 'balance_amount', 'status', 'updated_at'])
        _touch_client(cash_sale)

    logger.info(f"Invoice {invoice.invoice_number} converted to cash sale {cash_sale.sale_number}")
    return cash_sale


def proceed_to_cash_sale(quotation, user=None):
    """
    Take a fully paid quotation to a cash sale.

    The quotation always goes through a sales order first (created when
    missing) so that the chain quotation -> sales order -> cash sale is kept.
    """
    summary = summary_for_document(quotation)
    threshold = cash_sale_threshold()
    if summary.payment_percentage < threshold:
        raise WorkflowError(
            f"Cash sale requires {threshold}% payment; "
            f"{quotation.quotation_number} is {summary.payment_percentage:.1f}% paid"
        )

    with transaction.atomic():
        sales_order = proceed_to_sales_order(quotation, user=user)
        return proceed_to_cash_sale_from_sales_order(sales_order, user=user)


def resolve_quotation(document_number):
    """Find the quotation behind a quotation, sales order or invoice number"""
    if not document_number:
        return None
    quotation = Quotation.objects.filter(quotation_number=document_number).first()
    if quotation is not None:
        return quotation

    original_number = (
        SalesOrder.objects.filter(order_number=document_number)
        .values_list('original_quotation_number', flat=True).first()
        or Invoice.objects.filter(invoice_number=document_number)
        .values_list('original_quotation_number', flat=True).first()
    )
    if original_number:
        return Quotation.objects.filter(quotation_number=original_number).first()
    return None


def evaluate_progression(document_number, user=None, dry_run=False):
    """
    Apply the progression rules to the quotation behind `document_number`.

    Returns the list of steps taken (or, on a dry run, the steps that would be
    taken): 'sales_order', 'invoice' and/or 'cash_sale'.
    """
    quotation = resolve_quotation(document_number)
    if quotation is None:
        logger.debug(f"No quotation found for {document_number}; nothing to progress")
        return []

    summary = check_payment_requirements(quotation.quotation_number, quotation.grand_total)
    if not summary.has_payments:
        return []

    steps = []
    percentage = summary.payment_percentage

    sales_order = find_sales_order(quotation)
    if sales_order is None:
        if quotation.status not in OPEN_QUOTATION_STATUSES:
            logger.warning(
                f"Quotation {quotation.quotation_number} is {quotation.status} without a sales order; "
                f"run fix_converted_quotations to repair it"
            )
            return []
        steps.append('sales_order')
        if not dry_run:
            sales_order = proceed_to_sales_order(quotation, user=user)

    if sales_order is not None and sales_order.status == 'cancelled':
        return steps

    invoice = sales_order.invoices.order_by('id').first() if sales_order is not None else None
    if invoice is not None:
        if invoice.status in ('cancelled', 'converted_to_cash_sale') or invoice.cash_sales.exists():
            return steps
        if not dry_run:
            sync_invoice_payments(invoice, summary)
        if percentage >= cash_sale_threshold():
            steps.append('cash_sale')
            if not dry_run:
                proceed_to_cash_sale_from_invoice(invoice, user=user)
        return steps

    if sales_order is not None and sales_order.cash_sales.exists():
        return steps

    if percentage >= cash_sale_threshold():
        steps.append('cash_sale')
        if not dry_run:
            proceed_to_cash_sale_from_sales_order(sales_order, user=user)
    elif percentage >= invoice_threshold():
        steps.append('invoice')
        if not dry_run:
            proceed_to_invoice(sales_order, user=user)

    return steps


def paid_quotation_numbers():
    """Quotation numbers referenced by completed payments"""
    numbers = set()
    for quotation_number, paid_to in Payment.objects.filter(status='completed').values_list('quotation_number', 'paid_to'):
        for value in (quotation_number, paid_to):
            if value:
                numbers.add(value)
    return sorted(Quotation.objects.filter(quotation_number__in=numbers).values_list('quotation_number', flat=True))


def process_all_quotations(dry_run=False):
    """
    Catch-up pass: apply the progression rules to every paid quotation.

    Returns a dict mapping quotation number to the steps taken. Failures are
    logged and reported as an 'error: ...' step so one bad document does not
    stop the pass.
    """
    results = {}
    for quotation_number in paid_quotation_numbers():
        try:
            with transaction.atomic():
                steps = evaluate_progression(quotation_number, dry_run=dry_run)
        except WorkflowError as e:
            logger.warning(f"Could not progress {quotation_number}: {e}")
            steps = [f'error: {e}']
        except Exception as e:
            logger.error(f"Progression failed for {quotation_number}: {e}", exc_info=True)
            steps = [f'error: {e}']
        if steps:
            results[quotation_number] = steps
    return results


def fix_incorrectly_converted_quotations(quotation_numbers=None, dry_run=False):
    """
    Repair quotations marked converted_to_cash_sale without a sales order.

    Such quotations skipped the sales order step. They are reset to pending
    and re-run through the progression rules. Returns a dict mapping quotation
    number to the steps taken.
    """
    queryset = Quotation.objects.filter(status='converted_to_cash_sale')
    if quotation_numbers:
        queryset = queryset.filter(quotation_number__in=quotation_numbers)

    results = {}
    for quotation in queryset.order_by('date_created', 'id'):
        if find_sales_order(quotation) is not None:
            continue

        if dry_run:
            summary = check_payment_requirements(quotation.quotation_number, quotation.grand_total)
            steps = ['reset']
            if summary.has_payments:
                steps.append('sales_order')
                if summary.payment_percentage >= cash_sale_threshold():
                    steps.append('cash_sale')
                elif summary.payment_percentage >= invoice_threshold():
                    steps.append('invoice')
            results[quotation.quotation_number] = steps
            continue

        try:
            with transaction.atomic():
                _set_status(quotation, 'pending')
                steps = ['reset'] + evaluate_progression(quotation.quotation_number)
        except WorkflowError as e:
            logger.warning(f"Could not repair {quotation.quotation_number}: {e}")
            steps = [f'error: {e}']
        results[quotation.quotation_number] = steps
        logger.info(f"Repaired quotation {quotation.quotation_number}: {', '.join(steps)}")

    return results
