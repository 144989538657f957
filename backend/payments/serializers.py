from rest_framework import serializers
from backend.sales.models import SalesOrder, Invoice
from .models import Payment, Expense, ExpenseCategory, AccountTransaction, AccountBalance


class PaymentSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True)
    invoice_number = serializers.CharField(source='invoice.invoice_number', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'payment_number', 'client', 'client_name', 'invoice', 'invoice_number',
            'quotation_number', 'paid_to', 'amount', 'payment_method', 'account_credited',
            'reference_number', 'description', 'date_paid', 'status',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = ['payment_number', 'created_by', 'created_at', 'updated_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Payment amount must be greater than zero")
        return value

    def validate(self, attrs):
        quotation_number = attrs.get('quotation_number', getattr(self.instance, 'quotation_number', ''))
        paid_to = attrs.get('paid_to', getattr(self.instance, 'paid_to', ''))
        invoice = attrs.get('invoice', getattr(self.instance, 'invoice', None))
        if not (quotation_number or paid_to or invoice):
            raise serializers.ValidationError("A payment must reference a quotation, order or invoice number")
        # An invoice payment is also a payment to that invoice number
        if invoice is not None and not paid_to:
            attrs['paid_to'] = invoice.invoice_number
            if not quotation_number and invoice.original_quotation_number:
                attrs['quotation_number'] = invoice.original_quotation_number
        elif paid_to and not quotation_number:
            # Payments made to an order or invoice number count towards its quotation
            original_number = (
                SalesOrder.objects.filter(order_number=paid_to)
                .values_list('original_quotation_number', flat=True).first()
                or Invoice.objects.filter(invoice_number=paid_to)
                .values_list('original_quotation_number', flat=True).first()
            )
            if original_number:
                attrs['quotation_number'] = original_number
        return attrs


class ExpenseCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ExpenseCategory
        fields = ['id', 'name', 'category_type', 'description', 'is_active', 'created_at']
        read_only_fields = ['created_at']


class ExpenseSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id', 'expense_number', 'expense_type', 'client', 'client_name', 'category', 'category_name',
            'department', 'amount', 'description', 'receipt_number', 'account_debited', 'date_created',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = ['expense_number', 'created_by', 'created_at', 'updated_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Expense amount must be greater than zero")
        return value

    def validate(self, attrs):
        expense_type = attrs.get('expense_type', getattr(self.instance, 'expense_type', 'company'))
        client = attrs.get('client', getattr(self.instance, 'client', None))
        if expense_type == 'client' and client is None:
            raise serializers.ValidationError({'client': "Client expenses must name a client"})
        return attrs


class AccountTransactionSerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = AccountTransaction
        fields = [
            'id', 'transaction_number', 'account_type', 'transaction_type', 'amount', 'description',
            'reference_type', 'reference_id', 'transaction_date', 'balance_after',
            'created_by', 'created_by_username', 'created_at'
        ]
        read_only_fields = fields


class AccountBalanceSerializer(serializers.ModelSerializer):
    account_name = serializers.CharField(source='get_account_type_display', read_only=True)
    last_transaction_number = serializers.CharField(source='last_transaction.transaction_number', read_only=True)

    class Meta:
        model = AccountBalance
        fields = ['id', 'account_type', 'account_name', 'current_balance', 'last_transaction_number', 'updated_at']
        read_only_fields = fields
