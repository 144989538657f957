from django.urls import path
from .views import (
    stock_item_list_create, stock_item_detail, stock_item_adjust, stock_item_movements,
    stock_low, stock_search
)

urlpatterns = [
    path('stock/', stock_item_list_create, name='stock-item-list-create'),
    path('stock/low-stock/', stock_low, name='stock-low'),
    path('stock/search/', stock_search, name='stock-search'),
    path('stock/<int:pk>/', stock_item_detail, name='stock-item-detail'),
    path('stock/<int:pk>/adjust/', stock_item_adjust, name='stock-item-adjust'),
    path('stock/<int:pk>/movements/', stock_item_movements, name='stock-item-movements'),
]
