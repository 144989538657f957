"""
URL configuration for backend project.

Every app is mounted under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Sales Workflow Admin Panel"
admin.site.site_title = "Sales Workflow Admin Portal"
admin.site.index_title = "Welcome to the Sales Workflow Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.parties.urls')),
    path('api/v1/', include('backend.inventory.urls')),
    path('api/v1/', include('backend.sales.urls')),
    path('api/v1/', include('backend.payments.urls')),
    path('api/v1/', include('backend.purchasing.urls')),
    path('api/v1/', include('backend.reports.urls')),
]
