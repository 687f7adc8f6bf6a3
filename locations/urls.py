"""URL routes for the location registry (v1)."""

from django.urls import path

from .views import (
    LocationActivityView,
    LocationChildrenView,
    LocationDeactivateView,
    LocationDetailView,
    LocationDyeLotVarianceView,
    LocationInventorySummaryView,
    LocationListCreateView,
    LocationUtilizationView,
)

app_name = "locations"

urlpatterns = [
    path("", LocationListCreateView.as_view(), name="location-list"),
    path("<int:location_id>/", LocationDetailView.as_view(), name="location-detail"),
    path("<int:location_id>/children/", LocationChildrenView.as_view(), name="location-children"),
    path("<int:location_id>/deactivate/", LocationDeactivateView.as_view(), name="location-deactivate"),
    path("<int:location_id>/utilization/", LocationUtilizationView.as_view(), name="location-utilization"),
    path("<int:location_id>/inventory/", LocationInventorySummaryView.as_view(), name="location-inventory"),
    path(
        "<int:location_id>/dye-lot-variances/",
        LocationDyeLotVarianceView.as_view(),
        name="location-dye-lot-variances",
    ),
    path("<int:location_id>/activity/", LocationActivityView.as_view(), name="location-activity"),
]

# EOF
