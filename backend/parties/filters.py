import django_filters
from django.db.models import Q
from .models import RegisteredEntity


class RegisteredEntityFilter(django_filters.FilterSet):
    """Filter registered entities by name/phone search, type and status"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    type = django_filters.ChoiceFilter(choices=RegisteredEntity.TYPE_CHOICES)
    status = django_filters.ChoiceFilter(choices=RegisteredEntity.STATUS_CHOICES)

    class Meta:
        model = RegisteredEntity
        fields = ['search', 'type', 'status']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(phone__icontains=value) |
            Q(company__icontains=value) |
            Q(email__icontains=value)
        )
