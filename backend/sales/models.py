from django.db import models
from django.utils import timezone
from decimal import Decimal
from backend.core.models import User
from backend.core.numbering import (
    QUOTATION_PREFIX, SALES_ORDER_PREFIX, INVOICE_PREFIX, CASH_SALE_PREFIX, generate_next_number, save_with_number
)
from .totals import SECTIONS, LABOUR_SECTIONS, calculate_document_totals, item_total


# Header fields carried from a document to the one it is converted into
DOCUMENT_COPY_FIELDS = (
    ['client'] +
    [f'{section}_total' for section in SECTIONS] +
    [f'include_{section}' for section in SECTIONS if section != 'cabinet'] +
    ['labour_percentage'] +
    [f'{section}_labour_percentage' for section in LABOUR_SECTIONS] +
    ['worktop_labor_qty', 'worktop_labor_unit_price', 'labour_total', 'total_amount',
     'vat_percentage', 'vat_amount', 'grand_total', 'notes', 'terms_conditions', 'section_names']
)


def default_section_names():
    return {
        'cabinet': 'General',
        'worktop': 'Worktop',
        'accessories': 'Accessories',
        'appliances': 'Appliances',
        'wardrobes': 'Wardrobes',
        'tvunit': 'TV Unit',
    }


class SalesDocument(models.Model):
    """Fields shared by quotations, sales orders, invoices and cash sales"""
    NUMBER_FIELD = None
    NUMBER_PREFIX = None

    client = models.ForeignKey(
        'parties.RegisteredEntity', on_delete=models.PROTECT, related_name='%(class)ss'
    )
    date_created = models.DateTimeField(default=timezone.now)

    cabinet_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    worktop_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    accessories_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    appliances_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    wardrobes_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    tvunit_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    include_worktop = models.BooleanField(default=True)
    include_accessories = models.BooleanField(default=False)
    include_appliances = models.BooleanField(default=False)
    include_wardrobes = models.BooleanField(default=False)
    include_tvunit = models.BooleanField(default=False)

    labour_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('30.00'))
    # Null means "use labour_percentage"
    cabinet_labour_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    accessories_labour_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    appliances_labour_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    wardrobes_labour_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    tvunit_labour_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    worktop_labor_qty = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    worktop_labor_unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    labour_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    vat_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('16.00'))
    vat_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    grand_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    notes = models.TextField(blank=True)
    terms_conditions = models.TextField(blank=True)
    section_names = models.JSONField(default=default_section_names, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __str__(self):
        return self.number or f"{self.__class__.__name__}-{self.pk}"

    @property
    def number(self):
        return getattr(self, self.NUMBER_FIELD)

    def save(self, *args, **kwargs):
        save_with_number(
            self, self.NUMBER_FIELD,
            lambda: generate_next_number(type(self), self.NUMBER_FIELD, self.NUMBER_PREFIX),
            super().save, *args, **kwargs
        )

    def included_sections(self):
        return {
            section: section == 'cabinet' or bool(getattr(self, f'include_{section}'))
            for section in SECTIONS
        }

    def section_labour_percentages(self):
        return {section: getattr(self, f'{section}_labour_percentage') for section in LABOUR_SECTIONS}

    def calculate_totals(self, items):
        """Totals for `items` using this document's section flags, labour and VAT settings"""
        return calculate_document_totals(
            items,
            include=self.included_sections(),
            labour_percentage=self.labour_percentage,
            section_labour_percentages=self.section_labour_percentages(),
            worktop_labor_qty=self.worktop_labor_qty,
            worktop_labor_unit_price=self.worktop_labor_unit_price,
            vat_percentage=self.vat_percentage,
        )

    def apply_totals(self, totals):
        for field, value in totals.as_fields().items():
            setattr(self, field, value)

    def recalculate_totals(self, save=True):
        totals = self.calculate_totals(self.items.all())
        self.apply_totals(totals)
        if save:
            self.save(update_fields=list(totals.as_fields().keys()) + ['updated_at'])
        return totals


class DocumentItem(models.Model):
    """Line item shared by all sales documents"""
    CATEGORY_CHOICES = [
        ('cabinet', 'Cabinet'),
        ('worktop', 'Worktop'),
        ('accessories', 'Accessories'),
        ('appliances', 'Appliances'),
        ('wardrobes', 'Wardrobes'),
        ('tvunit', 'TV Unit'),
    ]

    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='cabinet')
    description = models.CharField(max_length=500)
    unit = models.CharField(max_length=50, default='pcs')
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('1.00'))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    stock_item = models.ForeignKey(
        'inventory.StockItem', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )

    class Meta:
        abstract = True
        ordering = ['id']

    def save(self, *args, **kwargs):
        self.total_price = item_total(self.quantity, self.unit_price)
        super().save(*args, **kwargs)

    def copy_values(self):
        return {
            'category': self.category,
            'description': self.description,
            'unit': self.unit,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'total_price': self.total_price,
            'stock_item_id': self.stock_item_id,
        }

    def __str__(self):
        return f"{self.description} x {self.quantity}"


class Quotation(SalesDocument):
    NUMBER_FIELD = 'quotation_number'
    NUMBER_PREFIX = QUOTATION_PREFIX

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('expired', 'Expired'),
        ('converted_to_sales_order', 'Converted to Sales Order'),
        ('converted_to_invoice', 'Converted to Invoice'),
        ('converted_to_cash_sale', 'Converted to Cash Sale'),
    ]

    quotation_number = models.CharField(max_length=50, unique=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending')

    class Meta:
        db_table = 'quotations'
        ordering = ['-date_created', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_quotation_status'),
            models.Index(fields=['-date_created'], name='idx_quotation_date'),
        ]


class QuotationItem(DocumentItem):
    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name='items')

    class Meta(DocumentItem.Meta):
        db_table = 'quotation_items'


class SalesOrder(SalesDocument):
    NUMBER_FIELD = 'order_number'
    NUMBER_PREFIX = SALES_ORDER_PREFIX

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('delivered', 'Delivered'),
        ('converted_to_invoice', 'Converted to Invoice'),
        ('converted_to_cash_sale', 'Converted to Cash Sale'),
    ]

    order_number = models.CharField(max_length=50, unique=True, blank=True)
    # Not unique: legacy data may hold several orders per quotation until deduplicated
    quotation = models.ForeignKey(Quotation, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_orders')
    original_quotation_number = models.CharField(max_length=50, blank=True, db_index=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending')

    class Meta:
        db_table = 'sales_orders'
        ordering = ['-date_created', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_so_status'),
            models.Index(fields=['-date_created'], name='idx_so_date'),
        ]


class SalesOrderItem(DocumentItem):
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.CASCADE, related_name='items')

    class Meta(DocumentItem.Meta):
        db_table = 'sales_order_items'


class Invoice(SalesDocument):
    NUMBER_FIELD = 'invoice_number'
    NUMBER_PREFIX = INVOICE_PREFIX

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('partially_paid', 'Partially Paid'),
        ('paid', 'Paid'),
        ('overdue', 'Overdue'),
        ('cancelled', 'Cancelled'),
        ('converted_to_cash_sale', 'Converted to Cash Sale'),
    ]

    invoice_number = models.CharField(max_length=50, unique=True, blank=True)
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoices')
    original_quotation_number = models.CharField(max_length=50, blank=True, db_index=True)
    due_date = models.DateField(null=True, blank=True)
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    balance_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending')

    @property
    def is_overdue(self):
        return (
            self.due_date is not None
            and self.balance_amount > 0
            and self.status not in ('paid', 'cancelled', 'converted_to_cash_sale')
            and self.due_date < timezone.localdate()
        )

    class Meta:
        db_table = 'invoices'
        ordering = ['-date_created', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_invoice_status'),
            models.Index(fields=['-date_created'], name='idx_invoice_date'),
            models.Index(fields=['due_date'], name='idx_invoice_due'),
        ]


class InvoiceItem(DocumentItem):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')

    class Meta(DocumentItem.Meta):
        db_table = 'invoice_items'


class CashSale(SalesDocument):
    NUMBER_FIELD = 'sale_number'
    NUMBER_PREFIX = CASH_SALE_PREFIX

    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('mpesa', 'M-Pesa'),
        ('bank_transfer', 'Bank Transfer'),
        ('cooperative_bank', 'Cooperative Bank'),
        ('cheque', 'Cheque'),
        ('card', 'Card'),
    ]

    sale_number = models.CharField(max_length=50, unique=True, blank=True)
    quotation = models.ForeignKey(Quotation, on_delete=models.SET_NULL, null=True, blank=True, related_name='cash_sales')
    sales_order = models.ForeignKey(SalesOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='cash_sales')
    invoice = models.ForeignKey(Invoice, on_delete=models.SET_NULL, null=True, blank=True, related_name='cash_sales')
    original_quotation_number = models.CharField(max_length=50, blank=True, db_index=True)
    original_order_number = models.CharField(max_length=50, blank=True)
    original_invoice_number = models.CharField(max_length=50, blank=True)
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default='cash')
    payment_reference = models.CharField(max_length=100, blank=True)
    amount_paid = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    change_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    balance_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')

    class Meta:
        db_table = 'cash_sales'
        ordering = ['-date_created', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_cashsale_status'),
            models.Index(fields=['-date_created'], name='idx_cashsale_date'),
        ]


class CashSaleItem(DocumentItem):
    cash_sale = models.ForeignKey(CashSale, on_delete=models.CASCADE, related_name='items')

    class Meta(DocumentItem.Meta):
        db_table = 'cash_sale_items'


ITEM_MODELS = {
    Quotation: QuotationItem,
    SalesOrder: SalesOrderItem,
    Invoice: InvoiceItem,
    CashSale: CashSaleItem,
}

ITEM_PARENT_FIELDS = {
    Quotation: 'quotation',
    SalesOrder: 'sales_order',
    Invoice: 'invoice',
    CashSale: 'cash_sale',
}
