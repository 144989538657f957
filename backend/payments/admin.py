from django.contrib import admin
from .models import Payment, Expense, ExpenseCategory, AccountTransaction, AccountBalance


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['payment_number', 'client', 'paid_to', 'quotation_number', 'amount', 'payment_method', 'status', 'date_paid']
    list_filter = ['status', 'payment_method', 'date_paid']
    search_fields = ['payment_number', 'paid_to', 'quotation_number', 'reference_number', 'client__name']
    readonly_fields = ['payment_number', 'created_at', 'updated_at']


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'category_type', 'is_active']
    list_filter = ['category_type', 'is_active']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['expense_number', 'expense_type', 'client', 'category', 'amount', 'account_debited', 'date_created']
    list_filter = ['expense_type', 'account_debited', 'date_created']
    search_fields = ['expense_number', 'description', 'receipt_number']


@admin.register(AccountTransaction)
class AccountTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_number', 'account_type', 'transaction_type', 'amount', 'balance_after', 'reference_type', 'reference_id', 'transaction_date']
    list_filter = ['account_type', 'transaction_type', 'reference_type']
    search_fields = ['transaction_number', 'description']
    readonly_fields = ['transaction_number', 'balance_after', 'created_at']


@admin.register(AccountBalance)
class AccountBalanceAdmin(admin.ModelAdmin):
    list_display = ['account_type', 'current_balance', 'updated_at']
