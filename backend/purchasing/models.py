from django.db import models
from django.utils import timezone
from decimal import Decimal
from backend.core.models import User
from backend.core.numbering import PURCHASE_PREFIX, generate_next_number, save_with_number


class Purchase(models.Model):
    """Purchase order from a supplier, optionally bought for a client's job"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('received', 'Received'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('not_yet_paid', 'Not Yet Paid'),
        ('partially_paid', 'Partially Paid'),
        ('fully_paid', 'Fully Paid'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('cooperative_bank', 'Cooperative Bank'),
        ('bank_transfer', 'Bank Transfer'),
        ('cheque', 'Cheque'),
        ('credit', 'Credit'),
    ]

    purchase_order_number = models.CharField(max_length=50, unique=True, blank=True)
    supplier = models.ForeignKey('parties.RegisteredEntity', on_delete=models.PROTECT, related_name='supplied_purchases')
    # Set for purchases made on behalf of a client
    client = models.ForeignKey(
        'parties.RegisteredEntity', on_delete=models.SET_NULL, null=True, blank=True, related_name='client_purchases'
    )
    purchase_date = models.DateField(default=timezone.localdate)
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default='cash')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='not_yet_paid')
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    notes = models.TextField(blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='purchases')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        save_with_number(
            self, 'purchase_order_number',
            lambda: generate_next_number(Purchase, 'purchase_order_number', PURCHASE_PREFIX),
            super().save, *args, **kwargs
        )

    def __str__(self):
        return self.purchase_order_number or f"Purchase-{self.id}"

    def get_total(self):
        """Sum of the item totals"""
        return sum((item.total_price for item in self.items.all()), Decimal('0.00'))

    def recalculate_total(self, save=True):
        self.total_amount = self.get_total()
        if save:
            self.save(update_fields=['total_amount', 'updated_at'])
        return self.total_amount

    class Meta:
        db_table = 'purchases'
        ordering = ['-purchase_date', '-id']
        indexes = [
            models.Index(fields=['-purchase_date'], name='idx_purchase_date'),
            models.Index(fields=['status'], name='idx_purchase_status'),
        ]


class PurchaseItem(models.Model):
    """Line of a purchase order; linked stock items are topped up when the purchase is received"""
    purchase = models.ForeignKey(Purchase, on_delete=models.CASCADE, related_name='items')
    stock_item = models.ForeignKey(
        'inventory.StockItem', on_delete=models.SET_NULL, null=True, blank=True, related_name='purchase_items'
    )
    description = models.CharField(max_length=255, blank=True)
    unit = models.CharField(max_length=50, default='pcs')
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    def save(self, *args, **kwargs):
        self.total_price = (self.quantity * self.unit_price).quantize(Decimal('0.01'))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.purchase} - {self.description or self.stock_item}"

    class Meta:
        db_table = 'purchase_items'
        ordering = ['id']
