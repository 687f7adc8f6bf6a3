"""URL routes for purchasing and receiving (v1)."""

from django.urls import path

from .views import (
    DeliveryCheckInView,
    DeliveryDetailView,
    DeliveryListCreateView,
    DeliveryStatusView,
    PurchaseOrderCancelView,
    PurchaseOrderConfirmView,
    PurchaseOrderDetailView,
    PurchaseOrderListCreateView,
    PurchaseOrderSubmitView,
)

app_name = "procurement"

urlpatterns = [
    path("purchase-orders/", PurchaseOrderListCreateView.as_view(), name="po-list"),
    path("purchase-orders/<int:po_id>/", PurchaseOrderDetailView.as_view(), name="po-detail"),
    path("purchase-orders/<int:po_id>/submit/", PurchaseOrderSubmitView.as_view(), name="po-submit"),
    path("purchase-orders/<int:po_id>/confirm/", PurchaseOrderConfirmView.as_view(), name="po-confirm"),
    path("purchase-orders/<int:po_id>/cancel/", PurchaseOrderCancelView.as_view(), name="po-cancel"),
    path("deliveries/", DeliveryListCreateView.as_view(), name="delivery-list"),
    path("deliveries/<int:delivery_id>/", DeliveryDetailView.as_view(), name="delivery-detail"),
    path("deliveries/<int:delivery_id>/status/", DeliveryStatusView.as_view(), name="delivery-status"),
    path("deliveries/<int:delivery_id>/check-in/", DeliveryCheckInView.as_view(), name="delivery-check-in"),
]

# EOF
