from django.contrib.auth.models import AbstractUser
from django.db import models


APP_SECTIONS = [
    ('register', 'Register'),
    ('sales', 'Sales'),
    ('payments', 'Payments'),
    ('expenses', 'Expenses'),
    ('purchases', 'Purchases'),
    ('stock', 'Stock'),
    ('reports', 'Reports'),
    ('settings', 'Settings'),
]

ACTION_BUTTONS = [
    ('add', 'Add / Create'),
    ('edit', 'Edit'),
    ('delete', 'Delete'),
    ('export', 'Export'),
    ('view', 'View'),
]

ADMIN_ROLES = ('superadmin', 'ceo', 'deputy_ceo')


class User(AbstractUser):
    """Extended user model with role and per-user section access"""
    ROLE_CHOICES = [
        ('none', 'No role'),
        ('superadmin', 'Super Admin'),
        ('ceo', 'CEO'),
        ('deputy_ceo', 'Deputy CEO'),
        ('sales', 'Sales'),
        ('finance', 'Finance'),
        ('design', 'Design'),
    ]

    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='none')
    # Empty lists mean "use the role defaults"
    sections = models.JSONField(default=list, blank=True)
    action_buttons = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin_role(self):
        return self.role in ADMIN_ROLES or self.is_superuser

    def get_sections(self):
        """Sections this user can open; admin roles default to all of them"""
        if self.sections:
            return list(self.sections)
        if self.is_admin_role:
            return [section_id for section_id, _ in APP_SECTIONS]
        return []

    def get_action_buttons(self):
        if self.action_buttons:
            return list(self.action_buttons)
        if self.is_admin_role:
            return [action_id for action_id, _ in ACTION_BUTTONS]
        return ['view']

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('view', 'View'),
        ('status_change', 'Status Change'),
        ('payment_add', 'Payment Added'),
        ('expense_add', 'Expense Added'),
        ('document_convert', 'Document Converted'),
        ('duplicate_cleanup', 'Duplicate Cleanup'),
        ('stock_adjust', 'Stock Adjustment'),
        ('stock_purchase', 'Stock Added (Purchase)'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., client name, invoice number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., quotation number, payment number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_auditlog_created'),
            models.Index(fields=['action'], name='idx_auditlog_action'),
            models.Index(fields=['model_name'], name='idx_auditlog_model'),
            models.Index(fields=['object_reference'], name='idx_auditlog_reference'),
        ]
