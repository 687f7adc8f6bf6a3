"""Purchase order and delivery endpoints."""

from common.exceptions import WarehouseError, error_body
from common.idempotency import idempotent_response
from common.permissions import actor_of, capability_for
from common.throttling import WAREHOUSE_THROTTLES
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from inventory.serializers import MaterialLotSerializer
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .models import Delivery, PurchaseOrder
from .serializers import (
    CheckInSerializer,
    DeliveryScheduleSerializer,
    DeliverySerializer,
    DeliveryStatusSerializer,
    PurchaseOrderCreateSerializer,
    PurchaseOrderSerializer,
)

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within scope+path+method",
    type=str,
)


def _po_body(po_id: int) -> dict:
    return PurchaseOrderSerializer(PurchaseOrder.objects.prefetch_related("lines").get(id=po_id)).data


def _delivery_body(delivery_id: int) -> dict:
    delivery = Delivery.objects.select_related("purchase_order", "location").prefetch_related("lines")
    return DeliverySerializer(delivery.get(id=delivery_id)).data


class PurchaseOrderListCreateView(generics.ListAPIView):
    serializer_class = PurchaseOrderSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    filterset_fields = ["status", "vendor_id", "project_id"]
    search_fields = ["po_number", "vendor_name", "project_name", "lines__material_name"]
    ordering_fields = ["created_at", "total", "expected_delivery_date"]

    def get_throttles(self):
        self.throttle_scope = "warehouse_write" if self.request.method == "POST" else "warehouse"
        return super().get_throttles()

    def get_queryset(self):
        return PurchaseOrder.objects.prefetch_related("lines").order_by("-id")

    @extend_schema(tags=["Procurement"], summary="List purchase orders")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Procurement"],
        summary="Create purchase order",
        description="Creates a draft order (or a submitted one with `submit`). Tax is applied at the configured rate.",
        parameters=[IDEMPOTENCY_HEADER],
        request=PurchaseOrderCreateSerializer,
        responses={201: PurchaseOrderSerializer},
        examples=[
            OpenApiExample(
                "Project order",
                value={
                    "vendor_name": "Shaw Floors",
                    "project_id": "PRJ-7",
                    "project_name": "Hillside remodel",
                    "lines": [
                        {
                            "material_name": "Coastal Oak LVP",
                            "sku": "LVP-COAST-OAK",
                            "quantity": "250",
                            "unit_cost": "4.00",
                        }
                    ],
                },
                request_only=True,
            ),
            OpenApiExample(
                "Created",
                value={
                    "id": 3,
                    "po_number": "PO-2025-003",
                    "status": "draft",
                    "subtotal": "1000.00",
                    "tax": "82.50",
                    "total": "1082.50",
                },
                response_only=True,
            ),
        ],
    )
    def post(self, request):
        ser = PurchaseOrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        lines = [dict(line) for line in data.pop("lines")]

        def _handler():
            try:
                po = services.create_purchase_order(
                    lines=lines, created_by=actor_of(request), can=capability_for(request.user), **data
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _po_body(po.id), 201

        return idempotent_response(request, _handler)


class PurchaseOrderDetailView(generics.RetrieveAPIView):
    serializer_class = PurchaseOrderSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    lookup_url_kwarg = "po_id"

    def get_queryset(self):
        return PurchaseOrder.objects.prefetch_related("lines")

    @extend_schema(tags=["Procurement"], summary="Get purchase order")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class _PurchaseOrderActionView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"
    service = None

    def post(self, request, po_id: int):
        po = self.service(po_id=po_id, can=capability_for(request.user))
        return Response(_po_body(po.id))


class PurchaseOrderSubmitView(_PurchaseOrderActionView):
    service = staticmethod(services.submit_purchase_order)

    @extend_schema(
        tags=["Procurement"], summary="Submit purchase order", request=None, responses=PurchaseOrderSerializer
    )
    def post(self, request, po_id: int):
        return super().post(request, po_id)


class PurchaseOrderConfirmView(_PurchaseOrderActionView):
    service = staticmethod(services.confirm_purchase_order)

    @extend_schema(
        tags=["Procurement"], summary="Confirm purchase order", request=None, responses=PurchaseOrderSerializer
    )
    def post(self, request, po_id: int):
        return super().post(request, po_id)


class PurchaseOrderCancelView(_PurchaseOrderActionView):
    service = staticmethod(services.cancel_purchase_order)

    @extend_schema(
        tags=["Procurement"],
        summary="Cancel purchase order",
        description="Cancels an open order and releases stock it holds for its project. Cancelling twice is a no-op.",
        request=None,
        responses=PurchaseOrderSerializer,
    )
    def post(self, request, po_id: int):
        return super().post(request, po_id)


class DeliveryListCreateView(generics.ListAPIView):
    serializer_class = DeliverySerializer
    throttle_classes = WAREHOUSE_THROTTLES
    filterset_fields = ["status", "purchase_order", "location", "scheduled_date"]
    search_fields = ["vendor_name", "project_name", "purchase_order__po_number"]
    ordering_fields = ["scheduled_date", "created_at"]

    def get_throttles(self):
        self.throttle_scope = "warehouse_write" if self.request.method == "POST" else "warehouse"
        return super().get_throttles()

    def get_queryset(self):
        return Delivery.objects.select_related("purchase_order", "location").prefetch_related("lines").order_by("-id")

    @extend_schema(tags=["Procurement"], summary="List deliveries")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Procurement"],
        summary="Schedule delivery",
        description="Expects a shipment against a submitted order; lines are prefilled with outstanding quantities.",
        request=DeliveryScheduleSerializer,
        responses={201: DeliverySerializer},
    )
    def post(self, request):
        ser = DeliveryScheduleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        delivery = services.schedule_delivery(po_id=data.pop("purchase_order"), **data)
        return Response(_delivery_body(delivery.id), status=status.HTTP_201_CREATED)


class DeliveryDetailView(generics.RetrieveAPIView):
    serializer_class = DeliverySerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    lookup_url_kwarg = "delivery_id"

    def get_queryset(self):
        return Delivery.objects.select_related("purchase_order", "location").prefetch_related("lines")

    @extend_schema(tags=["Procurement"], summary="Get delivery")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class DeliveryStatusView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Procurement"],
        summary="Update delivery status",
        description="scheduled -> in-transit -> arrived.",
        request=DeliveryStatusSerializer,
        responses=DeliverySerializer,
    )
    def post(self, request, delivery_id: int):
        ser = DeliveryStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        delivery = services.update_delivery_status(delivery_id=delivery_id, status=ser.validated_data["status"])
        return Response(_delivery_body(delivery.id))


class DeliveryCheckInView(APIView):
    """Receive a delivery into stock; each accepted line becomes a lot."""

    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Procurement"],
        summary="Check in delivery",
        description=(
            "Creates a lot per accepted line (received - damaged) at `location`, updates the order to "
            "`partial` or `received`, and reports over-shipments in `over_received`."
        ),
        parameters=[IDEMPOTENCY_HEADER],
        request=CheckInSerializer,
        responses=dict,
        examples=[
            OpenApiExample(
                "Partial",
                value={
                    "location": 2,
                    "received_lines": [
                        {"sku": "LVP-COAST-OAK", "received_quantity": "600", "damaged_quantity": "0", "dye_lot": "A1"}
                    ],
                },
                request_only=True,
            )
        ],
    )
    def post(self, request, delivery_id: int):
        ser = CheckInSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        received_lines = [dict(line) for line in data.pop("received_lines")]
        location_id = data.pop("location")

        def _handler():
            try:
                result = services.check_in_delivery(
                    delivery_id=delivery_id,
                    location_id=location_id,
                    received_lines=received_lines,
                    checked_in_by=actor_of(request),
                    can=capability_for(request.user),
                    **data,
                )
            except WarehouseError as exc:
                return error_body(exc)
            body = {
                "delivery": _delivery_body(result["delivery"].id),
                "purchase_order": _po_body(result["purchase_order"].id),
                "lots": MaterialLotSerializer(result["lots"], many=True).data,
                "over_received": [
                    {**row, "over": str(row["over"])} for row in result["over_received"]
                ],
            }
            return body, 200

        return idempotent_response(request, _handler)


# EOF
