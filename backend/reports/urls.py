from django.urls import path
from . import views

urlpatterns = [
    path('reports/sales-summary/', views.sales_summary, name='sales-summary'),
    path('reports/account-summary/', views.account_summary, name='account-summary'),
    path('reports/financial-summary/', views.financial_summary, name='financial-summary'),
    path('reports/export/<slug:kind>/', views.export_report, name='report-export'),
]
