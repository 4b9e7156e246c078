"""
URL configuration for the storefront project.
"""

from django.contrib import admin
from django.urls import include, path

from apps.observability.views.health import healthz, readyz

handler404 = "storefront.error_views.handle_404"
handler500 = "storefront.error_views.handle_500"

urlpatterns = [
    path("healthz", healthz, name="healthz"),
    path("readyz", readyz, name="readyz"),
    path("admin/", admin.site.urls),
    path("api/", include("storefront.api_urls")),
]
