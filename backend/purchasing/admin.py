from django.contrib import admin
from .models import Purchase, PurchaseItem


class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 1
    fields = ['stock_item', 'description', 'unit', 'quantity', 'unit_price', 'total_price']
    readonly_fields = ['total_price']


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ['purchase_order_number', 'supplier', 'client', 'purchase_date', 'payment_method', 'get_total', 'status']
    list_filter = ['status', 'payment_method', 'payment_status', 'purchase_date']
    search_fields = ['purchase_order_number', 'notes', 'supplier__name']
    ordering = ['-purchase_date', '-id']
    inlines = [PurchaseItemInline]
    readonly_fields = ['purchase_order_number', 'total_amount', 'created_at', 'updated_at']

    def get_total(self, obj):
        return f"KES {obj.total_amount:,.2f}"
    get_total.short_description = 'Total'
