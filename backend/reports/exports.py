"""
List report exports as CSV or PDF.

Every export is a title, the generation date, a grid of rows and a
"Total ... : KES x" line.
"""
import csv
import io
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Tuple

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.payments.filters import PaymentFilter, ExpenseFilter
from backend.payments.models import Payment, Expense
from backend.sales.filters import QuotationFilter, SalesOrderFilter, InvoiceFilter, CashSaleFilter
from backend.sales.models import Quotation, SalesOrder, Invoice, CashSale

logger = logging.getLogger('backend.reports')


def _date(value):
    if value is None:
        return ''
    if hasattr(value, 'astimezone') and timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime('%Y-%m-%d')


def _amount(value):
    return f"{Decimal(value or 0):,.2f}"


def _client(document):
    return document.client.name if document.client_id else ''


@dataclass
class ExportSpec:
    title: str
    total_label: str
    queryset: Callable
    filter_class: type
    columns: List[Tuple[str, Callable]]
    total_of: Callable

    def rows(self, queryset):
        return [[accessor(obj) for _, accessor in self.columns] for obj in queryset]

    def headers(self):
        return [header for header, _ in self.columns]

    def total(self, queryset):
        return sum((Decimal(self.total_of(obj) or 0) for obj in queryset), Decimal('0.00'))


def _document_columns(number_field):
    return [
        ('Number', lambda d: getattr(d, number_field)),
        ('Date', lambda d: _date(d.date_created)),
        ('Client', _client),
        ('Total', lambda d: _amount(d.total_amount)),
        ('VAT', lambda d: _amount(d.vat_amount)),
        ('Grand Total', lambda d: _amount(d.grand_total)),
        ('Status', lambda d: d.get_status_display()),
    ]


EXPORTS = {
    'quotations': ExportSpec(
        title='Quotations Report',
        total_label='Total Quotations Value',
        queryset=lambda: Quotation.objects.select_related('client'),
        filter_class=QuotationFilter,
        columns=_document_columns('quotation_number'),
        total_of=lambda d: d.grand_total,
    ),
    'sales-orders': ExportSpec(
        title='Sales Orders Report',
        total_label='Total Sales Orders Value',
        queryset=lambda: SalesOrder.objects.select_related('client'),
        filter_class=SalesOrderFilter,
        columns=_document_columns('order_number') + [('Quotation', lambda d: d.original_quotation_number)],
        total_of=lambda d: d.grand_total,
    ),
    'invoices': ExportSpec(
        title='Invoices Report',
        total_label='Total Invoiced',
        queryset=lambda: Invoice.objects.select_related('client'),
        filter_class=InvoiceFilter,
        columns=_document_columns('invoice_number') + [
            ('Paid', lambda d: _amount(d.paid_amount)),
            ('Balance', lambda d: _amount(d.balance_amount)),
            ('Due', lambda d: _date(d.due_date)),
        ],
        total_of=lambda d: d.grand_total,
    ),
    'cash-sales': ExportSpec(
        title='Cash Sales Report',
        total_label='Total Cash Sales',
        queryset=lambda: CashSale.objects.select_related('client'),
        filter_class=CashSaleFilter,
        columns=_document_columns('sale_number') + [
            ('Method', lambda d: d.payment_method),
            ('Amount Paid', lambda d: _amount(d.amount_paid)),
        ],
        total_of=lambda d: d.amount_paid,
    ),
    'payments': ExportSpec(
        title='Payments Report',
        total_label='Total Payments',
        queryset=lambda: Payment.objects.select_related('client'),
        filter_class=PaymentFilter,
        columns=[
            ('Number', lambda p: p.payment_number),
            ('Date', lambda p: _date(p.date_paid)),
            ('Client', _client),
            ('Paid To', lambda p: p.paid_to or p.quotation_number),
            ('Method', lambda p: p.get_payment_method_display()),
            ('Reference', lambda p: p.reference_number),
            ('Amount', lambda p: _amount(p.amount)),
            ('Status', lambda p: p.get_status_display()),
        ],
        total_of=lambda p: p.amount if p.status == 'completed' else 0,
    ),
    'client-expenses': ExportSpec(
        title='Client Expenses Report',
        total_label='Total Client Expenses',
        queryset=lambda: Expense.objects.filter(expense_type='client').select_related('client', 'category'),
        filter_class=ExpenseFilter,
        columns=[
            ('Number', lambda e: e.expense_number),
            ('Date', lambda e: _date(e.date_created)),
            ('Client', _client),
            ('Category', lambda e: e.category.name if e.category_id else ''),
            ('Description', lambda e: e.description),
            ('Account', lambda e: e.get_account_debited_display()),
            ('Amount', lambda e: _amount(e.amount)),
        ],
        total_of=lambda e: e.amount,
    ),
    'company-expenses': ExportSpec(
        title='Company Expenses Report',
        total_label='Total Company Expenses',
        queryset=lambda: Expense.objects.filter(expense_type='company').select_related('category'),
        filter_class=ExpenseFilter,
        columns=[
            ('Number', lambda e: e.expense_number),
            ('Date', lambda e: _date(e.date_created)),
            ('Department', lambda e: e.department),
            ('Category', lambda e: e.category.name if e.category_id else ''),
            ('Description', lambda e: e.description),
            ('Account', lambda e: e.get_account_debited_display()),
            ('Amount', lambda e: _amount(e.amount)),
        ],
        total_of=lambda e: e.amount,
    ),
}


def export_queryset(kind, params):
    spec = EXPORTS[kind]
    return spec.filter_class(params, queryset=spec.queryset()).qs


def currency():
    return getattr(settings, 'CURRENCY', 'KES')


def total_line(spec, total):
    return f"{spec.total_label}: {currency()} {_amount(total)}"


def render_csv(kind, queryset):
    """CSV text for an export"""
    spec = EXPORTS[kind]
    objects = list(queryset)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([spec.title])
    writer.writerow([f"Generated: {timezone.localtime().strftime('%Y-%m-%d %H:%M')}"])
    writer.writerow([])
    writer.writerow(spec.headers())
    writer.writerows(spec.rows(objects))
    writer.writerow([])
    writer.writerow([total_line(spec, spec.total(objects))])
    return buffer.getvalue()


def render_pdf(kind, queryset):
    """PDF bytes for an export: title, date, grid table and total line"""
    spec = EXPORTS[kind]
    objects = list(queryset)
    styles = getSampleStyleSheet()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        rightMargin=12 * mm,
        leftMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=spec.title,
    )

    story = [
        Paragraph(spec.title, styles['Title']),
        Paragraph(f"Generated: {timezone.localtime().strftime('%Y-%m-%d %H:%M')}", styles['Normal']),
        Spacer(1, 6 * mm),
    ]

    data = [spec.headers()] + spec.rows(objects)
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]))
    story.append(table)
    story.append(Spacer(1, 6 * mm))
    story.append(Paragraph(total_line(spec, spec.total(objects)), styles['Heading3']))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    logger.info(f"Rendered {kind} PDF export with {len(objects)} rows")
    return pdf_bytes
