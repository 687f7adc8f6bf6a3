from django.urls import path

from .views import TransferAdvanceView, TransferDetailView, TransferListCreateView

app_name = "transfers"

urlpatterns = [
    path("", TransferListCreateView.as_view(), name="transfer-list"),
    path("<int:transfer_id>/", TransferDetailView.as_view(), name="transfer-detail"),
    path("<int:transfer_id>/advance/", TransferAdvanceView.as_view(), name="transfer-advance"),
]

# EOF
