"""
Duplicate sales order and cash sale cleanup.

Sales orders created from the same quotation for the same client and amount
are duplicates; the earliest one is kept and everything that pointed at the
others is moved to it. A merged order keeps a single invoice and a single
cash sale, the earliest of each. Cash sales are duplicates when client and grand total
match; the one with the lowest id is kept.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from django.db import transaction

from backend.core.cache_signals import suspend_cache_signals
from backend.core.cache_utils import invalidate_reports_cache
from .models import SalesOrder, Invoice, CashSale

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    key: tuple
    keep: object
    duplicates: list = field(default_factory=list)

    def as_dict(self):
        return {
            'keep': self.keep.number,
            'duplicates': [document.number for document in self.duplicates],
        }


@dataclass
class CleanupResult:
    groups: list = field(default_factory=list)
    deleted: int = 0
    repointed_invoices: int = 0
    repointed_cash_sales: int = 0
    removed_invoices: int = 0
    removed_cash_sales: int = 0
    dry_run: bool = False

    def as_dict(self):
        return {
            'dry_run': self.dry_run,
            'groups': [group.as_dict() for group in self.groups],
            'deleted': self.deleted,
            'repointed_invoices': self.repointed_invoices,
            'repointed_cash_sales': self.repointed_cash_sales,
            'removed_invoices': self.removed_invoices,
            'removed_cash_sales': self.removed_cash_sales,
        }


@dataclass
class DownstreamPlan:
    """What a merged group keeps: at most one invoice and one cash sale"""
    invoice: object = None
    cash_sale: object = None
    extra_invoices: list = field(default_factory=list)
    extra_cash_sales: list = field(default_factory=list)
    status: str = ''


def find_duplicate_sales_orders():
    """Groups of sales orders sharing client, grand total and original quotation number"""
    grouped = defaultdict(list)
    orders = SalesOrder.objects.order_by('date_created', 'id')
    for order in orders:
        key = (order.client_id, order.grand_total, order.original_quotation_number or '')
        grouped[key].append(order)

    return [
        DuplicateGroup(key=key, keep=orders_in_group[0], duplicates=orders_in_group[1:])
        for key, orders_in_group in grouped.items()
        if len(orders_in_group) > 1
    ]


def plan_downstream(group):
    """
    Earliest invoice and cash sale across the group survive, later ones are
    conflicts. The kept order takes the most advanced status of the group.
    """
    order_ids = [group.keep.id] + [order.id for order in group.duplicates]
    invoices = list(Invoice.objects.filter(sales_order_id__in=order_ids).order_by('id'))
    cash_sales = list(CashSale.objects.filter(sales_order_id__in=order_ids).order_by('id'))
    statuses = {group.keep.status} | {order.status for order in group.duplicates}

    plan = DownstreamPlan(
        invoice=invoices[0] if invoices else None,
        cash_sale=cash_sales[0] if cash_sales else None,
        extra_invoices=invoices[1:],
        extra_cash_sales=cash_sales[1:],
        status=group.keep.status,
    )
    if plan.cash_sale is not None or 'converted_to_cash_sale' in statuses:
        plan.status = 'converted_to_cash_sale'
    elif plan.invoice is not None or 'converted_to_invoice' in statuses:
        plan.status = 'converted_to_invoice'
    return plan


def _merge_group(group, plan, result):
    keep = group.keep
    extra_invoice_ids = [invoice.id for invoice in plan.extra_invoices]

    if plan.cash_sale is not None:
        cash_sale = plan.cash_sale
        update_fields = []
        if cash_sale.sales_order_id != keep.id:
            cash_sale.sales_order = keep
            update_fields.append('sales_order')
            result.repointed_cash_sales += 1
        if cash_sale.invoice_id in extra_invoice_ids:
            cash_sale.invoice = plan.invoice
            update_fields.append('invoice')
        if update_fields:
            cash_sale.save(update_fields=update_fields + ['updated_at'])
        CashSale.objects.filter(id__in=[sale.id for sale in plan.extra_cash_sales]).delete()
        result.removed_cash_sales += len(plan.extra_cash_sales)

    if plan.invoice is not None:
        invoice = plan.invoice
        if invoice.sales_order_id != keep.id:
            invoice.sales_order = keep
            invoice.save(update_fields=['sales_order', 'updated_at'])
            result.repointed_invoices += 1
        if plan.cash_sale is not None and plan.cash_sale.invoice_id == invoice.id:
            Invoice.objects.filter(pk=invoice.pk).update(status='converted_to_cash_sale')
        Invoice.objects.filter(id__in=extra_invoice_ids).delete()
        result.removed_invoices += len(extra_invoice_ids)

    if keep.status != plan.status:
        keep.status = plan.status
        keep.save(update_fields=['status', 'updated_at'])

    SalesOrder.objects.filter(id__in=[order.id for order in group.duplicates]).delete()
    result.deleted += len(group.duplicates)


def merge_duplicate_sales_orders(dry_run=False):
    """Keep the earliest order of each duplicate group and delete the rest"""
    groups = find_duplicate_sales_orders()
    result = CleanupResult(groups=groups, dry_run=dry_run)
    if dry_run or not groups:
        for group in groups:
            plan = plan_downstream(group)
            result.deleted += len(group.duplicates)
            result.removed_invoices += len(plan.extra_invoices)
            result.removed_cash_sales += len(plan.extra_cash_sales)
        return result

    with suspend_cache_signals(), transaction.atomic():
        for group in groups:
            plan = plan_downstream(group)
            _merge_group(group, plan, result)
            logger.info(
                f"Kept sales order {group.keep.order_number} ({plan.status}), removed "
                f"{', '.join(order.order_number for order in group.duplicates)}"
            )
            if plan.extra_invoices or plan.extra_cash_sales:
                logger.warning(
                    f"Sales order {group.keep.order_number}: removed conflicting invoices "
                    f"{[invoice.invoice_number for invoice in plan.extra_invoices]} and cash sales "
                    f"{[sale.sale_number for sale in plan.extra_cash_sales]}"
                )

    invalidate_reports_cache()
    return result


def find_duplicate_cash_sales():
    grouped = defaultdict(list)
    for cash_sale in CashSale.objects.order_by('id'):
        grouped[(cash_sale.client_id, cash_sale.grand_total)].append(cash_sale)

    return [
        DuplicateGroup(key=key, keep=sales[0], duplicates=sales[1:])
        for key, sales in grouped.items()
        if len(sales) > 1
    ]


def cleanup_duplicate_cash_sales(dry_run=False):
    """Keep the lowest id cash sale per client and grand total"""
    groups = find_duplicate_cash_sales()
    result = CleanupResult(groups=groups, dry_run=dry_run)
    if dry_run or not groups:
        result.deleted = sum(len(group.duplicates) for group in groups)
        return result

    with suspend_cache_signals(), transaction.atomic():
        for group in groups:
            duplicate_ids = [cash_sale.id for cash_sale in group.duplicates]
            CashSale.objects.filter(id__in=duplicate_ids).delete()
            result.deleted += len(duplicate_ids)
            logger.info(
                f"Kept cash sale {group.keep.sale_number}, removed "
                f"{', '.join(cash_sale.sale_number for cash_sale in group.duplicates)}"
            )

    invalidate_reports_cache()
    return result
