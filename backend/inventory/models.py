from django.db import models
from decimal import Decimal


class StockItem(models.Model):
    """Stock catalogue entry with on-hand quantity"""
    STATUS_CHOICES = [
        ('in_stock', 'In Stock'),
        ('low_stock', 'Low Stock'),
        ('out_of_stock', 'Out of Stock'),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    sku = models.CharField(max_length=100, unique=True, blank=True, null=True)
    category = models.CharField(max_length=100, blank=True)
    unit = models.CharField(max_length=50, default='pcs')
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    reorder_level = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    supplier = models.ForeignKey(
        'parties.RegisteredEntity', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_items'
    )
    image_url = models.URLField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='out_of_stock')
    date_added = models.DateTimeField(auto_now_add=True)
    last_updated = models.DateTimeField(auto_now=True)

    @staticmethod
    def compute_status(quantity, reorder_level):
        if quantity > reorder_level:
            return 'in_stock'
        if quantity > 0:
            return 'low_stock'
        return 'out_of_stock'

    def save(self, *args, **kwargs):
        self.status = self.compute_status(self.quantity or Decimal('0'), self.reorder_level or Decimal('0'))
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'quantity' in update_fields and 'status' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['status']
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'stock_items'
        ordering = ['name']
        indexes = [
            models.Index(fields=['status'], name='idx_stockitem_status'),
            models.Index(fields=['category'], name='idx_stockitem_category'),
        ]


class StockMovement(models.Model):
    """Quantity change history for a stock item"""
    MOVEMENT_TYPE_CHOICES = [
        ('in', 'Stock In'),
        ('out', 'Stock Out'),
        ('adjustment', 'Adjustment'),
    ]

    stock_item = models.ForeignKey(StockItem, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=20, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    reference_type = models.CharField(max_length=50, blank=True)
    reference_id = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='stock_movements')
    date_created = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.stock_item.name} - {self.movement_type} - {self.quantity}"

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-date_created']
