from django.urls import path
from .views import entity_list_create, entity_detail, entity_search

urlpatterns = [
    path('registered-entities/', entity_list_create, name='registered-entity-list-create'),
    path('registered-entities/search/', entity_search, name='registered-entity-search'),
    path('registered-entities/<int:pk>/', entity_detail, name='registered-entity-detail'),
]
