"""Inventory endpoints: items, lots, movements and the audit trail.

Mutations on lots are replay-safe when the client sends an
``Idempotency-Key`` header (handheld scanners retry on flaky Wi-Fi).
"""

from common.exceptions import WarehouseError, error_body
from common.idempotency import idempotent_response
from common.permissions import actor_of, capability_for
from common.throttling import WAREHOUSE_THROTTLES
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors, services
from .filters import InventoryTransactionFilterSet, MaterialLotFilterSet, StockReservationFilterSet
from .models import InventoryItem, InventoryTransaction, MaterialLot, StockReservation
from .serializers import (
    AdjustLotSerializer,
    InventoryItemSerializer,
    InventoryTransactionSerializer,
    IssueLotSerializer,
    ItemCreateSerializer,
    MaterialLotSerializer,
    MoveLotSerializer,
    QCStatusSerializer,
    ReceiveLotSerializer,
    StockReservationSerializer,
)

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within scope+path+method",
    type=str,
)


def _lot_body(lot_id: int) -> dict:
    lot = MaterialLot.objects.prefetch_related("splits__location").get(id=lot_id)
    return MaterialLotSerializer(lot).data


class ItemListCreateView(generics.ListAPIView):
    serializer_class = InventoryItemSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    filterset_fields = ["category", "unit"]
    search_fields = ["sku", "name"]
    ordering_fields = ["name", "sku", "stock", "updated_at"]

    def get_throttles(self):
        self.throttle_scope = "warehouse_write" if self.request.method == "POST" else "warehouse"
        return super().get_throttles()

    def get_queryset(self):
        return InventoryItem.objects.order_by("name", "id")

    @extend_schema(tags=["Inventory"], summary="List items")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Inventory"],
        summary="Create item",
        request=ItemCreateSerializer,
        responses={201: InventoryItemSerializer},
        examples=[
            OpenApiExample(
                "LVP",
                value={"sku": "LVP-COAST-OAK", "name": "Coastal Oak LVP", "unit": "sqft", "category": "lvp"},
                request_only=True,
            )
        ],
    )
    def post(self, request):
        ser = ItemCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        item = ser.save()
        return Response(InventoryItemSerializer(item).data, status=status.HTTP_201_CREATED)


class ItemDetailView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(tags=["Inventory"], summary="Get item", responses=InventoryItemSerializer)
    def get(self, request, item_id: int):
        return Response(InventoryItemSerializer(selectors.get_item(item_id)).data)


class ItemDistributionView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(
        tags=["Inventory"],
        summary="Where an item sits",
        description="Quantity of the item at each location, largest first.",
        responses=dict,
        examples=[
            OpenApiExample(
                "Two bays",
                value=[
                    {"location_id": 4, "location_code": "WH-A-01", "location_name": "Bay 1", "quantity": "450.00"},
                    {"location_id": 9, "location_code": "TRK-01", "location_name": "Truck 1", "quantity": "80.00"},
                ],
                response_only=True,
            )
        ],
    )
    def get(self, request, item_id: int):
        selectors.get_item(item_id)
        return Response(selectors.get_item_location_distribution(item_id))


class LotListView(generics.ListAPIView):
    serializer_class = MaterialLotSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    filterset_class = MaterialLotFilterSet
    search_fields = ["lot_number", "dye_lot", "sku", "item_name", "po_number"]
    ordering_fields = ["received_date", "current_quantity", "lot_number"]

    def get_queryset(self):
        return MaterialLot.objects.prefetch_related("splits__location").order_by("received_date", "id")

    @extend_schema(
        tags=["Inventory"],
        summary="List lots",
        description="Filters: item, status, qc_status, dye_lot, lot_number, po_number, sku, location, received_after.",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class LotDetailView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(tags=["Inventory"], summary="Get lot", responses=MaterialLotSerializer)
    def get(self, request, lot_id: int):
        selectors.get_lot(lot_id)
        return Response(_lot_body(lot_id))


class LotReceiveView(APIView):
    """Put a new lot on the shelf at a receivable location."""

    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Inventory"],
        summary="Receive lot",
        parameters=[IDEMPOTENCY_HEADER],
        request=ReceiveLotSerializer,
        responses={201: MaterialLotSerializer},
        examples=[
            OpenApiExample(
                "Receive",
                value={
                    "item": 1,
                    "location": 4,
                    "lot_number": "L-2025-001",
                    "dye_lot": "A1",
                    "quantity": "300.00",
                    "unit_cost": "4.25",
                },
                request_only=True,
            )
        ],
    )
    def post(self, request):
        ser = ReceiveLotSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        item_id = data.pop("item")
        location_id = data.pop("location")

        def _handler():
            try:
                lot = services.receive_lot(
                    item_id=item_id, location_id=location_id, performed_by=actor_of(request), **data
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _lot_body(lot.id), 201

        return idempotent_response(request, _handler)


class LotMoveView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Inventory"],
        summary="Move lot quantity",
        description=(
            "Moves part of a lot split to another location. Fails with 409 `insufficient_stock` "
            "when the source does not hold enough unreserved quantity."
        ),
        parameters=[IDEMPOTENCY_HEADER],
        request=MoveLotSerializer,
        responses=MaterialLotSerializer,
        examples=[
            OpenApiExample(
                "Too much",
                value={
                    "code": "insufficient_stock",
                    "message": "Only 450.00 available at WH-A-01",
                    "errors": {"requested": "500.00", "available": "450.00"},
                    "status": 409,
                },
                response_only=True,
                status_codes=["409"],
            )
        ],
    )
    def post(self, request, lot_id: int):
        ser = MoveLotSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        def _handler():
            try:
                services.move_quantity(
                    lot_id=lot_id,
                    from_location_id=data["from_location"],
                    to_location_id=data["to_location"],
                    quantity=data["quantity"],
                    performed_by=actor_of(request),
                    notes=data["notes"],
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _lot_body(lot_id), 200

        return idempotent_response(request, _handler)


class LotAdjustView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Inventory"],
        summary="Adjust lot quantity",
        description="Signed correction at one location. Requires the adjust-inventory capability.",
        parameters=[IDEMPOTENCY_HEADER],
        request=AdjustLotSerializer,
        responses=MaterialLotSerializer,
    )
    def post(self, request, lot_id: int):
        ser = AdjustLotSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        def _handler():
            try:
                services.adjust_quantity(
                    lot_id=lot_id,
                    location_id=data["location"],
                    delta=data["delta"],
                    reason=data["reason"],
                    notes=data["notes"],
                    performed_by=actor_of(request),
                    can=capability_for(request.user),
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _lot_body(lot_id), 200

        return idempotent_response(request, _handler)


class LotIssueView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Inventory"],
        summary="Issue lot quantity to a job",
        parameters=[IDEMPOTENCY_HEADER],
        request=IssueLotSerializer,
        responses=MaterialLotSerializer,
    )
    def post(self, request, lot_id: int):
        ser = IssueLotSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        location_id = data.pop("location")

        def _handler():
            try:
                services.issue_quantity(
                    lot_id=lot_id, location_id=location_id, performed_by=actor_of(request), **data
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _lot_body(lot_id), 200

        return idempotent_response(request, _handler)


class LotQCView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Inventory"],
        summary="Record QC result for a lot",
        request=QCStatusSerializer,
        responses=MaterialLotSerializer,
    )
    def post(self, request, lot_id: int):
        ser = QCStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        services.set_qc_status(lot_id=lot_id, **ser.validated_data)
        return Response(_lot_body(lot_id))


class TransactionListView(generics.ListAPIView):
    serializer_class = InventoryTransactionSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    filterset_class = InventoryTransactionFilterSet
    ordering_fields = ["created_at", "quantity"]

    def get_queryset(self):
        return InventoryTransaction.objects.select_related("location", "to_location", "lot").order_by(
            "-created_at", "-id"
        )

    @extend_schema(
        tags=["Inventory"],
        summary="List inventory transactions",
        description=(
            "Append-only audit log. Filters: type, item, lot, location (either side), reference_type, "
            "reference_id, project_id, created_after, created_before (ISO)."
        ),
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class ReservationListView(generics.ListAPIView):
    serializer_class = StockReservationSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    filterset_class = StockReservationFilterSet

    def get_queryset(self):
        return StockReservation.objects.order_by("-created_at", "id")

    @extend_schema(
        tags=["Inventory"],
        summary="List stock reservations",
        description="Filters: item, lot, location, state (active/released/converted), source_ref, project_id.",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


# EOF
