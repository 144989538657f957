from django.db import models
from django.utils import timezone
from decimal import Decimal
from backend.core.models import User
from backend.core.numbering import PAYMENT_PREFIX, EXPENSE_PREFIX, generate_next_number, save_with_number

ACCOUNT_TYPE_CHOICES = [
    ('cash', 'Cash'),
    ('cooperative_bank', 'Cooperative Bank'),
    ('credit', 'Credit'),
    ('cheque', 'Cheque'),
]


class Payment(models.Model):
    """Client payment received against a quotation, order or invoice"""
    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('pending', 'Pending'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('mpesa', 'M-Pesa'),
        ('bank_transfer', 'Bank Transfer'),
        ('cooperative_bank', 'Cooperative Bank'),
        ('cheque', 'Cheque'),
        ('credit', 'Credit'),
        ('card', 'Card'),
    ]

    payment_number = models.CharField(max_length=50, unique=True, blank=True)
    client = models.ForeignKey('parties.RegisteredEntity', on_delete=models.PROTECT, related_name='payments')
    invoice = models.ForeignKey('sales.Invoice', on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    quotation_number = models.CharField(max_length=50, blank=True, db_index=True)
    # Document number the payment was made to (quotation, order or invoice number)
    paid_to = models.CharField(max_length=50, blank=True, db_index=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default='cash')
    account_credited = models.CharField(max_length=30, choices=ACCOUNT_TYPE_CHOICES, blank=True)
    reference_number = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    date_paid = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        save_with_number(
            self, 'payment_number',
            lambda: generate_next_number(Payment, 'payment_number', PAYMENT_PREFIX),
            super().save, *args, **kwargs
        )

    def __str__(self):
        return f"{self.payment_number} - {self.amount}"

    class Meta:
        db_table = 'payments'
        ordering = ['-date_paid', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_payment_status'),
            models.Index(fields=['-date_paid'], name='idx_payment_date'),
        ]


class ExpenseCategory(models.Model):
    """Expense categories for client and company expenses"""
    TYPE_CHOICES = [
        ('client', 'Client'),
        ('company', 'Company'),
    ]

    name = models.CharField(max_length=100)
    category_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='company')
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'expense_categories'
        ordering = ['name']
        verbose_name_plural = 'expense categories'
        unique_together = [['name', 'category_type']]


class Expense(models.Model):
    """Money spent, either on a client's job or by the company"""
    TYPE_CHOICES = [
        ('client', 'Client'),
        ('company', 'Company'),
    ]

    expense_number = models.CharField(max_length=50, unique=True, blank=True)
    expense_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='company')
    client = models.ForeignKey(
        'parties.RegisteredEntity', on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses'
    )
    category = models.ForeignKey(ExpenseCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    department = models.CharField(max_length=100, blank=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.TextField(blank=True)
    receipt_number = models.CharField(max_length=100, blank=True)
    account_debited = models.CharField(max_length=30, choices=ACCOUNT_TYPE_CHOICES, default='cash')
    date_created = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        save_with_number(
            self, 'expense_number',
            lambda: generate_next_number(Expense, 'expense_number', EXPENSE_PREFIX),
            super().save, *args, **kwargs
        )

    def __str__(self):
        return f"{self.expense_number} - {self.amount}"

    class Meta:
        db_table = 'expenses'
        ordering = ['-date_created', '-id']
        indexes = [
            models.Index(fields=['expense_type'], name='idx_expense_type'),
            models.Index(fields=['-date_created'], name='idx_expense_date'),
        ]


class AccountTransaction(models.Model):
    """Money in or out of one of the business accounts"""
    TRANSACTION_TYPE_CHOICES = [
        ('in', 'Money In'),
        ('out', 'Money Out'),
    ]

    REFERENCE_TYPE_CHOICES = [
        ('payment', 'Payment'),
        ('expense', 'Expense'),
        ('purchase', 'Purchase'),
        ('sale', 'Sale'),
    ]

    transaction_number = models.CharField(max_length=50, unique=True)
    account_type = models.CharField(max_length=30, choices=ACCOUNT_TYPE_CHOICES)
    transaction_type = models.CharField(max_length=10, choices=TRANSACTION_TYPE_CHOICES)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.TextField(blank=True)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPE_CHOICES)
    reference_id = models.PositiveIntegerField(null=True, blank=True)
    transaction_date = models.DateTimeField(default=timezone.now)
    balance_after = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='account_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.transaction_number} {self.transaction_type} {self.amount}"

    class Meta:
        db_table = 'account_transactions'
        ordering = ['-transaction_date', '-id']
        indexes = [
            models.Index(fields=['account_type', '-transaction_date'], name='idx_txn_account_date'),
            models.Index(fields=['reference_type', 'reference_id'], name='idx_txn_reference'),
        ]


class AccountBalance(models.Model):
    """Running balance per account"""
    account_type = models.CharField(max_length=30, choices=ACCOUNT_TYPE_CHOICES, unique=True)
    current_balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    last_transaction = models.ForeignKey(
        AccountTransaction, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_account_type_display()}: {self.current_balance}"

    class Meta:
        db_table = 'account_balances'
        ordering = ['account_type']
