from django.urls import path

from .views import (
    ItemDetailView,
    ItemDistributionView,
    ItemListCreateView,
    LotAdjustView,
    LotDetailView,
    LotIssueView,
    LotListView,
    LotMoveView,
    LotQCView,
    LotReceiveView,
    ReservationListView,
    TransactionListView,
)

app_name = "inventory"

urlpatterns = [
    path("items/", ItemListCreateView.as_view(), name="item-list"),
    path("items/<int:item_id>/", ItemDetailView.as_view(), name="item-detail"),
    path("items/<int:item_id>/distribution/", ItemDistributionView.as_view(), name="item-distribution"),
    path("lots/", LotListView.as_view(), name="lot-list"),
    path("lots/receive/", LotReceiveView.as_view(), name="lot-receive"),
    path("lots/<int:lot_id>/", LotDetailView.as_view(), name="lot-detail"),
    path("lots/<int:lot_id>/move/", LotMoveView.as_view(), name="lot-move"),
    path("lots/<int:lot_id>/adjust/", LotAdjustView.as_view(), name="lot-adjust"),
    path("lots/<int:lot_id>/issue/", LotIssueView.as_view(), name="lot-issue"),
    path("lots/<int:lot_id>/qc/", LotQCView.as_view(), name="lot-qc"),
    # Read-only audit trail
    path("transactions/", TransactionListView.as_view(), name="transaction-list"),
    path("reservations/", ReservationListView.as_view(), name="reservation-list"),
]

# EOF
