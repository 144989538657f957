from django.urls import path
from .views import (
    quotation_list_create, quotation_detail, quotation_payment_status,
    quotation_proceed_to_sales_order, quotation_proceed_to_cash_sale,
    sales_order_list_create, sales_order_detail,
    sales_order_proceed_to_invoice, sales_order_proceed_to_cash_sale,
    invoice_list_create, invoice_detail, invoice_proceed_to_cash_sale,
    cash_sale_list_create, cash_sale_detail,
    cleanup_duplicates
)

urlpatterns = [
    # Quotation endpoints
    path('quotations/', quotation_list_create, name='quotation-list-create'),
    path('quotations/<int:pk>/', quotation_detail, name='quotation-detail'),
    path('quotations/<int:pk>/payment-status/', quotation_payment_status, name='quotation-payment-status'),
    path('quotations/<int:pk>/proceed-to-sales-order/', quotation_proceed_to_sales_order, name='quotation-proceed-to-sales-order'),
    path('quotations/<int:pk>/proceed-to-cash-sale/', quotation_proceed_to_cash_sale, name='quotation-proceed-to-cash-sale'),

    # SalesOrder endpoints
    path('sales-orders/', sales_order_list_create, name='sales-order-list-create'),
    path('sales-orders/<int:pk>/', sales_order_detail, name='sales-order-detail'),
    path('sales-orders/<int:pk>/proceed-to-invoice/', sales_order_proceed_to_invoice, name='sales-order-proceed-to-invoice'),
    path('sales-orders/<int:pk>/proceed-to-cash-sale/', sales_order_proceed_to_cash_sale, name='sales-order-proceed-to-cash-sale'),

    # Invoice endpoints
    path('invoices/', invoice_list_create, name='invoice-list-create'),
    path('invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/proceed-to-cash-sale/', invoice_proceed_to_cash_sale, name='invoice-proceed-to-cash-sale'),

    # CashSale endpoints
    path('cash-sales/', cash_sale_list_create, name='cash-sale-list-create'),
    path('cash-sales/<int:pk>/', cash_sale_detail, name='cash-sale-detail'),

    # Maintenance
    path('sales/cleanup-duplicates/', cleanup_duplicates, name='sales-cleanup-duplicates'),
]
