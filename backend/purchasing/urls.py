from django.urls import path
from .views import purchase_list_create, purchase_detail, purchase_receive, purchase_cancel

urlpatterns = [
    path('purchases/', purchase_list_create, name='purchase-list-create'),
    path('purchases/<int:pk>/', purchase_detail, name='purchase-detail'),
    path('purchases/<int:pk>/receive/', purchase_receive, name='purchase-receive'),
    path('purchases/<int:pk>/cancel/', purchase_cancel, name='purchase-cancel'),
]
