from django.contrib import admin
from .models import StockItem, StockMovement


class StockMovementInline(admin.TabularInline):
    model = StockMovement
    extra = 0
    readonly_fields = ['movement_type', 'quantity', 'reference_type', 'reference_id', 'created_by', 'date_created']


@admin.register(StockItem)
class StockItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'quantity', 'reorder_level', 'unit_price', 'status', 'last_updated']
    list_filter = ['status', 'category']
    search_fields = ['name', 'sku', 'description']
    readonly_fields = ['status', 'date_added', 'last_updated']
    ordering = ['name']
    inlines = [StockMovementInline]


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['stock_item', 'movement_type', 'quantity', 'reference_type', 'reference_id', 'created_by', 'date_created']
    list_filter = ['movement_type', 'reference_type', 'date_created']
    search_fields = ['stock_item__name', 'reference_id', 'notes']
    ordering = ['-date_created']
