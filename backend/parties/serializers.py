from rest_framework import serializers
from .models import RegisteredEntity


class RegisteredEntitySerializer(serializers.ModelSerializer):
    class Meta:
        model = RegisteredEntity
        fields = [
            'id', 'name', 'type', 'phone', 'pin', 'location', 'email', 'address',
            'company', 'contact_person', 'notes', 'status', 'date_added', 'last_transaction'
        ]
        read_only_fields = ['date_added', 'last_transaction']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value


class RegisteredEntityLookupSerializer(serializers.ModelSerializer):
    """Compact representation used by the quick lookup"""
    class Meta:
        model = RegisteredEntity
        fields = ['id', 'name', 'type', 'phone', 'location']
