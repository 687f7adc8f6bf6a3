"""Root URL configuration for the FloorOps warehouse API."""

from common.auth_views import RefreshView, TokenView
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from .health import health

admin.site.site_header = "FloorOps Warehouse Admin"
admin.site.index_title = "Admin"

urlpatterns = [
    path("admin/", admin.site.urls),
    # API schema and Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="api-schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="api-schema"), name="api-docs"),
    # Healthcheck
    path("health/", health, name="health"),
    # Auth
    path("api/v1/token/", TokenView.as_view(), name="token-obtain"),
    path("api/v1/token/refresh/", RefreshView.as_view(), name="token-refresh"),
    # Versioned v1 routes only
    path("api/v1/locations/", include("locations.urls")),
    path("api/v1/inventory/", include("inventory.urls")),
    path("api/v1/transfers/", include("transfers.urls")),
    path("api/v1/procurement/", include("procurement.urls")),
    path("api/v1/acclimation/", include("acclimation.urls")),
]
