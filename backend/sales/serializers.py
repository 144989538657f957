from rest_framework import serializers
from django.db import transaction
from .models import (
    Quotation, QuotationItem, SalesOrder, SalesOrderItem,
    Invoice, InvoiceItem, CashSale, CashSaleItem,
    ITEM_MODELS, ITEM_PARENT_FIELDS,
)

ITEM_FIELDS = ['id', 'category', 'description', 'unit', 'quantity', 'unit_price', 'total_price', 'stock_item', 'stock_item_name']

DOCUMENT_FIELDS = [
    'id', 'client', 'client_name', 'client_phone', 'client_location', 'date_created',
    'cabinet_total', 'worktop_total', 'accessories_total', 'appliances_total', 'wardrobes_total', 'tvunit_total',
    'include_worktop', 'include_accessories', 'include_appliances', 'include_wardrobes', 'include_tvunit',
    'labour_percentage', 'cabinet_labour_percentage', 'accessories_labour_percentage',
    'appliances_labour_percentage', 'wardrobes_labour_percentage', 'tvunit_labour_percentage',
    'worktop_labor_qty', 'worktop_labor_unit_price',
    'labour_total', 'total_amount', 'vat_percentage', 'vat_amount', 'grand_total',
    'status', 'notes', 'terms_conditions', 'section_names',
    'created_by', 'created_by_username', 'created_at', 'updated_at', 'items',
]

CALCULATED_FIELDS = [
    'cabinet_total', 'worktop_total', 'accessories_total', 'appliances_total', 'wardrobes_total', 'tvunit_total',
    'labour_total', 'total_amount', 'vat_amount', 'grand_total',
]


class DocumentItemSerializer(serializers.ModelSerializer):
    stock_item_name = serializers.CharField(source='stock_item.name', read_only=True)

    class Meta:
        fields = ITEM_FIELDS
        read_only_fields = ['total_price']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero")
        return value

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit price cannot be negative")
        return value


class QuotationItemSerializer(DocumentItemSerializer):
    class Meta(DocumentItemSerializer.Meta):
        model = QuotationItem


class SalesOrderItemSerializer(DocumentItemSerializer):
    class Meta(DocumentItemSerializer.Meta):
        model = SalesOrderItem


class InvoiceItemSerializer(DocumentItemSerializer):
    class Meta(DocumentItemSerializer.Meta):
        model = InvoiceItem


class CashSaleItemSerializer(DocumentItemSerializer):
    class Meta(DocumentItemSerializer.Meta):
        model = CashSaleItem


class SalesDocumentSerializer(serializers.ModelSerializer):
    """
    Base serializer for sales documents.

    Items are passed separately through context['items_data']; when present
    they replace the document's items and the totals are recalculated.
    """
    item_serializer_class = None

    client_name = serializers.CharField(source='client.name', read_only=True)
    client_phone = serializers.CharField(source='client.phone', read_only=True)
    client_location = serializers.CharField(source='client.location', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)
    items = serializers.SerializerMethodField()

    class Meta:
        read_only_fields = CALCULATED_FIELDS + ['created_by', 'created_at', 'updated_at']

    def get_items(self, obj):
        return self.item_serializer_class(obj.items.all(), many=True).data

    def validate(self, attrs):
        items_data = self.context.get('items_data')
        if items_data is not None:
            item_serializer = self.item_serializer_class(data=items_data, many=True)
            if not item_serializer.is_valid():
                raise serializers.ValidationError({'items': item_serializer.errors})
            self._validated_items = item_serializer.validated_data
        return attrs

    def _replace_items(self, document):
        items = getattr(self, '_validated_items', None)
        if items is None:
            return
        model = type(document)
        item_model = ITEM_MODELS[model]
        parent_field = ITEM_PARENT_FIELDS[model]
        document.items.all().delete()
        for item in items:
            item_model.objects.create(**{parent_field: document}, **item)

    def create(self, validated_data):
        with transaction.atomic():
            document = super().create(validated_data)
            self._replace_items(document)
            document.recalculate_totals()
        return document

    def update(self, instance, validated_data):
        with transaction.atomic():
            document = super().update(instance, validated_data)
            self._replace_items(document)
            document.recalculate_totals()
        return document


class QuotationSerializer(SalesDocumentSerializer):
    item_serializer_class = QuotationItemSerializer
    total_paid = serializers.SerializerMethodField()
    has_payments = serializers.SerializerMethodField()
    payment_percentage = serializers.SerializerMethodField()

    class Meta(SalesDocumentSerializer.Meta):
        model = Quotation
        fields = ['quotation_number', 'valid_until', 'total_paid', 'has_payments', 'payment_percentage'] + DOCUMENT_FIELDS
        read_only_fields = SalesDocumentSerializer.Meta.read_only_fields + ['quotation_number']

    def _summary(self, obj):
        summaries = self.context.get('payment_summaries')
        if summaries is not None and obj.quotation_number in summaries:
            return summaries[obj.quotation_number]
        from .workflow import check_payment_requirements
        return check_payment_requirements(obj.quotation_number, obj.grand_total)

    def get_total_paid(self, obj):
        return str(self._summary(obj).total_paid)

    def get_has_payments(self, obj):
        return self._summary(obj).has_payments

    def get_payment_percentage(self, obj):
        return round(float(self._summary(obj).payment_percentage), 2)


class SalesOrderSerializer(SalesDocumentSerializer):
    item_serializer_class = SalesOrderItemSerializer

    class Meta(SalesDocumentSerializer.Meta):
        model = SalesOrder
        fields = ['order_number', 'quotation', 'original_quotation_number'] + DOCUMENT_FIELDS
        read_only_fields = SalesDocumentSerializer.Meta.read_only_fields + ['order_number']


class InvoiceSerializer(SalesDocumentSerializer):
    item_serializer_class = InvoiceItemSerializer
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta(SalesDocumentSerializer.Meta):
        model = Invoice
        fields = [
            'invoice_number', 'sales_order', 'original_quotation_number', 'due_date',
            'paid_amount', 'balance_amount', 'is_overdue'
        ] + DOCUMENT_FIELDS
        read_only_fields = SalesDocumentSerializer.Meta.read_only_fields + ['invoice_number', 'balance_amount']

    def _update_balance(self, invoice):
        invoice.balance_amount = invoice.grand_total - invoice.paid_amount
        invoice.save(update_fields=['balance_amount', 'updated_at'])
        return invoice

    def create(self, validated_data):
        return self._update_balance(super().create(validated_data))

    def update(self, instance, validated_data):
        return self._update_balance(super().update(instance, validated_data))


class CashSaleSerializer(SalesDocumentSerializer):
    item_serializer_class = CashSaleItemSerializer

    class Meta(SalesDocumentSerializer.Meta):
        model = CashSale
        fields = [
            'sale_number', 'quotation', 'sales_order', 'invoice', 'original_quotation_number',
            'original_order_number', 'original_invoice_number', 'payment_method', 'payment_reference',
            'amount_paid', 'change_amount', 'balance_amount'
        ] + DOCUMENT_FIELDS
        read_only_fields = SalesDocumentSerializer.Meta.read_only_fields + ['sale_number', 'change_amount', 'balance_amount']

    def _settle(self, cash_sale):
        """Change and balance follow from the amount tendered"""
        difference = cash_sale.amount_paid - cash_sale.grand_total
        cash_sale.change_amount = max(difference, 0)
        cash_sale.balance_amount = max(-difference, 0)
        cash_sale.save(update_fields=['change_amount', 'balance_amount', 'updated_at'])
        return cash_sale

    def create(self, validated_data):
        return self._settle(super().create(validated_data))

    def update(self, instance, validated_data):
        return self._settle(super().update(instance, validated_data))


class DocumentListSerializer(serializers.Serializer):
    """Compact, model-agnostic representation of any sales document"""
    id = serializers.IntegerField()
    number = serializers.CharField()
    document_type = serializers.SerializerMethodField()
    client_name = serializers.CharField(source='client.name')
    grand_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    status = serializers.CharField()
    date_created = serializers.DateTimeField()

    def get_document_type(self, obj):
        return {
            Quotation: 'quotation',
            SalesOrder: 'sales_order',
            Invoice: 'invoice',
            CashSale: 'cash_sale',
        }.get(type(obj), 'document')
