from django.urls import path
from .views import (
    payment_list_create, payment_detail,
    expense_list_create, expense_detail,
    expense_category_list_create, expense_category_detail,
    account_transaction_list, account_balance_list,
)

urlpatterns = [
    path('payments/', payment_list_create, name='payment-list-create'),
    path('payments/<int:pk>/', payment_detail, name='payment-detail'),
    path('expenses/', expense_list_create, name='expense-list-create'),
    path('expenses/<int:pk>/', expense_detail, name='expense-detail'),
    path('expense-categories/', expense_category_list_create, name='expense-category-list-create'),
    path('expense-categories/<int:pk>/', expense_category_detail, name='expense-category-detail'),
    path('accounts/transactions/', account_transaction_list, name='account-transaction-list'),
    path('accounts/balances/', account_balance_list, name='account-balance-list'),
]
