from django.contrib import admin
from .models import RegisteredEntity


@admin.register(RegisteredEntity)
class RegisteredEntityAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'phone', 'location', 'status', 'date_added', 'last_transaction']
    list_filter = ['type', 'status', 'date_added']
    search_fields = ['name', 'phone', 'email', 'company']
    ordering = ['name']
