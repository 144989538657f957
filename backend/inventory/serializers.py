from rest_framework import serializers
from .models import StockItem, StockMovement


class StockItemSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)

    class Meta:
        model = StockItem
        fields = [
            'id', 'name', 'description', 'sku', 'category', 'unit', 'unit_price', 'quantity',
            'reorder_level', 'supplier', 'supplier_name', 'image_url', 'status', 'date_added', 'last_updated'
        ]
        read_only_fields = ['status', 'date_added', 'last_updated']

    def validate_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError("Quantity cannot be negative")
        return value

    def validate_sku(self, value):
        # Blank SKUs are stored as NULL so the unique constraint ignores them
        return value or None


class StockMovementSerializer(serializers.ModelSerializer):
    stock_item_name = serializers.CharField(source='stock_item.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            'id', 'stock_item', 'stock_item_name', 'movement_type', 'quantity', 'reference_type',
            'reference_id', 'notes', 'created_by', 'created_by_username', 'date_created'
        ]
        read_only_fields = ['created_by', 'date_created']
