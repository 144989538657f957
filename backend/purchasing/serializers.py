from rest_framework import serializers
from django.db import transaction
from .models import Purchase, PurchaseItem


class PurchaseItemSerializer(serializers.ModelSerializer):
    stock_item_name = serializers.CharField(source='stock_item.name', read_only=True)

    class Meta:
        model = PurchaseItem
        fields = ['id', 'stock_item', 'stock_item_name', 'description', 'unit', 'quantity', 'unit_price', 'total_price']
        read_only_fields = ['total_price']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero")
        return value

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit price cannot be negative")
        return value

    def validate(self, attrs):
        if not attrs.get('stock_item') and not attrs.get('description'):
            raise serializers.ValidationError("Each item needs a stock item or a description")
        if attrs.get('stock_item') and not attrs.get('description'):
            attrs['description'] = attrs['stock_item'].name
        return attrs


class PurchaseSerializer(serializers.ModelSerializer):
    """
    Purchase with its items.

    Items are passed through context['items_data']; when present they replace
    the purchase's items and the total is recalculated. Received or cancelled
    purchases cannot have their items changed.
    """
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)
    items = PurchaseItemSerializer(many=True, read_only=True)

    class Meta:
        model = Purchase
        fields = [
            'id', 'purchase_order_number', 'supplier', 'supplier_name', 'client', 'client_name',
            'purchase_date', 'payment_method', 'payment_status', 'total_amount', 'status', 'notes',
            'received_at', 'created_by', 'created_by_username', 'created_at', 'updated_at', 'items'
        ]
        read_only_fields = [
            'purchase_order_number', 'total_amount', 'status', 'received_at', 'created_by', 'created_at', 'updated_at'
        ]

    def validate_supplier(self, value):
        if value.type != 'supplier':
            raise serializers.ValidationError(f"{value.name} is not a supplier")
        return value

    def validate_client(self, value):
        if value is not None and value.type != 'client':
            raise serializers.ValidationError(f"{value.name} is not a client")
        return value

    def validate(self, attrs):
        items_data = self.context.get('items_data')
        if items_data is None:
            if self.instance is None:
                raise serializers.ValidationError({'items': "A purchase needs at least one item"})
            return attrs
        if not items_data:
            raise serializers.ValidationError({'items': "A purchase needs at least one item"})
        if self.instance is not None and self.instance.status != 'pending':
            raise serializers.ValidationError({'items': f"Items of a {self.instance.status} purchase cannot be changed"})
        item_serializer = PurchaseItemSerializer(data=items_data, many=True)
        if not item_serializer.is_valid():
            raise serializers.ValidationError({'items': item_serializer.errors})
        self._validated_items = item_serializer.validated_data
        return attrs

    def _replace_items(self, purchase):
        items = getattr(self, '_validated_items', None)
        if items is None:
            return
        purchase.items.all().delete()
        for item in items:
            PurchaseItem.objects.create(purchase=purchase, **item)
        purchase.recalculate_total()

    def create(self, validated_data):
        with transaction.atomic():
            purchase = super().create(validated_data)
            self._replace_items(purchase)
        return purchase

    def update(self, instance, validated_data):
        with transaction.atomic():
            purchase = super().update(instance, validated_data)
            self._replace_items(purchase)
        return purchase
