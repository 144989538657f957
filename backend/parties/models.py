from django.db import models


class RegisteredEntity(models.Model):
    """Clients and suppliers the business deals with"""
    TYPE_CHOICES = [
        ('client', 'Client'),
        ('supplier', 'Supplier'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='client')
    phone = models.CharField(max_length=50, blank=True)
    pin = models.CharField(max_length=50, blank=True, help_text="KRA PIN")
    location = models.CharField(max_length=255, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    company = models.CharField(max_length=255, blank=True)
    contact_person = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    date_added = models.DateTimeField(auto_now_add=True)
    last_transaction = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'registered_entities'
        ordering = ['name']
        verbose_name_plural = 'registered entities'
        indexes = [
            models.Index(fields=['type'], name='idx_entity_type'),
            models.Index(fields=['name'], name='idx_entity_name'),
        ]
