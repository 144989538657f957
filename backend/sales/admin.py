from django.contrib import admin
from .models import (
    Quotation, QuotationItem, SalesOrder, SalesOrderItem,
    Invoice, InvoiceItem, CashSale, CashSaleItem
)

ITEM_READONLY_FIELDS = ['total_price']


class QuotationItemInline(admin.TabularInline):
    model = QuotationItem
    extra = 0
    readonly_fields = ITEM_READONLY_FIELDS


class SalesOrderItemInline(admin.TabularInline):
    model = SalesOrderItem
    extra = 0
    readonly_fields = ITEM_READONLY_FIELDS


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ITEM_READONLY_FIELDS


class CashSaleItemInline(admin.TabularInline):
    model = CashSaleItem
    extra = 0
    readonly_fields = ITEM_READONLY_FIELDS


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = ['quotation_number', 'client', 'grand_total', 'status', 'valid_until', 'date_created']
    list_filter = ['status', 'date_created']
    search_fields = ['quotation_number', 'client__name']
    ordering = ['-date_created']
    inlines = [QuotationItemInline]
    readonly_fields = ['created_at', 'updated_at']


@admin.register(SalesOrder)
class SalesOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'client', 'original_quotation_number', 'grand_total', 'status', 'date_created']
    list_filter = ['status', 'date_created']
    search_fields = ['order_number', 'original_quotation_number', 'client__name']
    ordering = ['-date_created']
    inlines = [SalesOrderItemInline]
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'client', 'grand_total', 'paid_amount', 'balance_amount', 'status', 'due_date']
    list_filter = ['status', 'date_created', 'due_date']
    search_fields = ['invoice_number', 'original_quotation_number', 'client__name']
    ordering = ['-date_created']
    inlines = [InvoiceItemInline]
    readonly_fields = ['created_at', 'updated_at']


@admin.register(CashSale)
class CashSaleAdmin(admin.ModelAdmin):
    list_display = ['sale_number', 'client', 'grand_total', 'amount_paid', 'payment_method', 'status', 'date_created']
    list_filter = ['status', 'payment_method', 'date_created']
    search_fields = ['sale_number', 'original_quotation_number', 'client__name']
    ordering = ['-date_created']
    inlines = [CashSaleItemInline]
    readonly_fields = ['created_at', 'updated_at']
