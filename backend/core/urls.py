"""
Root URL configuration for the budgeting service.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("budgeting.urls")),
]
