# Generated manually
import backend.sales.models
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


def money_field(**kwargs):
    return models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, **kwargs)


def percentage_field(default=None):
    if default is None:
        return models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)
    return models.DecimalField(decimal_places=2, default=Decimal(default), max_digits=5)


def document_fields(related_name):
    """Columns shared by every sales document"""
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('date_created', models.DateTimeField(default=django.utils.timezone.now)),
        ('cabinet_total', money_field()),
        ('worktop_total', money_field()),
        ('accessories_total', money_field()),
        ('appliances_total', money_field()),
        ('wardrobes_total', money_field()),
        ('tvunit_total', money_field()),
        ('include_worktop', models.BooleanField(default=True)),
        ('include_accessories', models.BooleanField(default=False)),
        ('include_appliances', models.BooleanField(default=False)),
        ('include_wardrobes', models.BooleanField(default=False)),
        ('include_tvunit', models.BooleanField(default=False)),
        ('labour_percentage', percentage_field('30.00')),
        ('cabinet_labour_percentage', percentage_field()),
        ('accessories_labour_percentage', percentage_field()),
        ('appliances_labour_percentage', percentage_field()),
        ('wardrobes_labour_percentage', percentage_field()),
        ('tvunit_labour_percentage', percentage_field()),
        ('worktop_labor_qty', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
        ('worktop_labor_unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
        ('labour_total', money_field()),
        ('total_amount', money_field()),
        ('vat_percentage', percentage_field('16.00')),
        ('vat_amount', money_field()),
        ('grand_total', money_field()),
        ('notes', models.TextField(blank=True)),
        ('terms_conditions', models.TextField(blank=True)),
        ('section_names', models.JSONField(blank=True, default=backend.sales.models.default_section_names)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name=related_name, to='parties.registeredentity')),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
    ]


def item_fields(parent_name, parent_model):
    """Columns shared by every document item table"""
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('category', models.CharField(choices=[('cabinet', 'Cabinet'), ('worktop', 'Worktop'), ('accessories', 'Accessories'), ('appliances', 'Appliances'), ('wardrobes', 'Wardrobes'), ('tvunit', 'TV Unit')], default='cabinet', max_length=20)),
        ('description', models.CharField(max_length=500)),
        ('unit', models.CharField(default='pcs', max_length=50)),
        ('quantity', models.DecimalField(decimal_places=2, default=Decimal('1.00'), max_digits=12)),
        ('unit_price', money_field()),
        ('total_price', money_field()),
        ('stock_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='inventory.stockitem')),
        (parent_name, models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to=parent_model)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
        ('inventory', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Quotation',
            fields=document_fields('quotations') + [
                ('quotation_number', models.CharField(blank=True, max_length=50, unique=True)),
                ('valid_until', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending', 'Pending'), ('accepted', 'Accepted'), ('rejected', 'Rejected'), ('expired', 'Expired'), ('converted_to_sales_order', 'Converted to Sales Order'), ('converted_to_invoice', 'Converted to Invoice'), ('converted_to_cash_sale', 'Converted to Cash Sale')], default='pending', max_length=30)),
            ],
            options={
                'db_table': 'quotations',
                'ordering': ['-date_created', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_quotation_status'),
                    models.Index(fields=['-date_created'], name='idx_quotation_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='QuotationItem',
            fields=item_fields('quotation', 'sales.quotation'),
            options={
                'db_table': 'quotation_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='SalesOrder',
            fields=document_fields('salesorders') + [
                ('order_number', models.CharField(blank=True, max_length=50, unique=True)),
                ('original_quotation_number', models.CharField(blank=True, db_index=True, max_length=50)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('delivered', 'Delivered'), ('converted_to_invoice', 'Converted to Invoice'), ('converted_to_cash_sale', 'Converted to Cash Sale')], default='pending', max_length=30)),
                ('quotation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sales_orders', to='sales.quotation')),
            ],
            options={
                'db_table': 'sales_orders',
                'ordering': ['-date_created', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_so_status'),
                    models.Index(fields=['-date_created'], name='idx_so_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SalesOrderItem',
            fields=item_fields('sales_order', 'sales.salesorder'),
            options={
                'db_table': 'sales_order_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=document_fields('invoices') + [
                ('invoice_number', models.CharField(blank=True, max_length=50, unique=True)),
                ('original_quotation_number', models.CharField(blank=True, db_index=True, max_length=50)),
                ('due_date', models.DateField(blank=True, null=True)),
                ('paid_amount', money_field()),
                ('balance_amount', money_field()),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partially_paid', 'Partially Paid'), ('paid', 'Paid'), ('overdue', 'Overdue'), ('cancelled', 'Cancelled'), ('converted_to_cash_sale', 'Converted to Cash Sale')], default='pending', max_length=30)),
                ('sales_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices', to='sales.salesorder')),
            ],
            options={
                'db_table': 'invoices',
                'ordering': ['-date_created', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_invoice_status'),
                    models.Index(fields=['-date_created'], name='idx_invoice_date'),
                    models.Index(fields=['due_date'], name='idx_invoice_due'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InvoiceItem',
            fields=item_fields('invoice', 'sales.invoice'),
            options={
                'db_table': 'invoice_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='CashSale',
            fields=document_fields('cashsales') + [
                ('sale_number', models.CharField(blank=True, max_length=50, unique=True)),
                ('original_quotation_number', models.CharField(blank=True, db_index=True, max_length=50)),
                ('original_order_number', models.CharField(blank=True, max_length=50)),
                ('original_invoice_number', models.CharField(blank=True, max_length=50)),
                ('payment_method', models.CharField(choices=[('cash', 'Cash'), ('mpesa', 'M-Pesa'), ('bank_transfer', 'Bank Transfer'), ('cooperative_bank', 'Cooperative Bank'), ('cheque', 'Cheque'), ('card', 'Card')], default='cash', max_length=30)),
                ('payment_reference', models.CharField(blank=True, max_length=100)),
                ('amount_paid', money_field()),
                ('change_amount', money_field()),
                ('balance_amount', money_field()),
                ('status', models.CharField(choices=[('completed', 'Completed'), ('cancelled', 'Cancelled')], default='completed', max_length=20)),
                ('quotation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='cash_sales', to='sales.quotation')),
                ('sales_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='cash_sales', to='sales.salesorder')),
                ('invoice', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='cash_sales', to='sales.invoice')),
            ],
            options={
                'db_table': 'cash_sales',
                'ordering': ['-date_created', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_cashsale_status'),
                    models.Index(fields=['-date_created'], name='idx_cashsale_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CashSaleItem',
            fields=item_fields('cash_sale', 'sales.cashsale'),
            options={
                'db_table': 'cash_sale_items',
                'ordering': ['id'],
            },
        ),
    ]
