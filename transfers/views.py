"""Transfer endpoints.

Creating and advancing a transfer are replay-safe with an
``Idempotency-Key`` header. Stale ``version`` values come back as 409.
"""

from common.exceptions import WarehouseError, error_body
from common.idempotency import idempotent_response
from common.permissions import actor_of, capability_for
from common.throttling import WAREHOUSE_THROTTLES
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .models import StockTransfer
from .serializers import StockTransferSerializer, TransferAdvanceSerializer, TransferCreateSerializer

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within scope+path+method",
    type=str,
)


def _transfer_body(transfer_id: int) -> dict:
    transfer = StockTransfer.objects.select_related("from_location", "to_location").prefetch_related("lines")
    return StockTransferSerializer(transfer.get(id=transfer_id)).data


class TransferListCreateView(generics.ListAPIView):
    serializer_class = StockTransferSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    filterset_fields = ["status", "from_location", "to_location", "project_id"]
    search_fields = ["transfer_number", "project_name", "lines__lot_number"]
    ordering_fields = ["created_at", "status", "total_quantity"]

    def get_throttles(self):
        self.throttle_scope = "warehouse_write" if self.request.method == "POST" else "warehouse"
        return super().get_throttles()

    def get_queryset(self):
        return (
            StockTransfer.objects.select_related("from_location", "to_location")
            .prefetch_related("lines")
            .order_by("-id")
        )

    @extend_schema(tags=["Transfers"], summary="List transfers")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Transfers"],
        summary="Create transfer",
        description="Creates a pending transfer and reserves every line at the source location.",
        parameters=[IDEMPOTENCY_HEADER],
        request=TransferCreateSerializer,
        responses={201: StockTransferSerializer},
        examples=[
            OpenApiExample(
                "Bay to truck",
                value={
                    "from_location": 4,
                    "to_location": 9,
                    "project_id": "PRJ-7",
                    "project_name": "Hillside remodel",
                    "lines": [{"lot_id": 12, "quantity": "120.00"}],
                },
                request_only=True,
            )
        ],
    )
    def post(self, request):
        ser = TransferCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        def _handler():
            try:
                transfer = services.create_transfer(
                    from_location_id=data["from_location"],
                    to_location_id=data["to_location"],
                    lines=[dict(line) for line in data["lines"]],
                    project_id=data["project_id"],
                    project_name=data["project_name"],
                    notes=data["notes"],
                    created_by=actor_of(request),
                    can=capability_for(request.user),
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _transfer_body(transfer.id), 201

        return idempotent_response(request, _handler)


class TransferDetailView(generics.RetrieveAPIView):
    serializer_class = StockTransferSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    lookup_url_kwarg = "transfer_id"

    def get_queryset(self):
        return StockTransfer.objects.select_related("from_location", "to_location").prefetch_related("lines")

    @extend_schema(tags=["Transfers"], summary="Get transfer")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class TransferAdvanceView(APIView):
    """Move a transfer to its next status."""

    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Transfers"],
        summary="Advance transfer",
        description=(
            "pending -> approved -> picking -> in_transit -> received, or cancelled before picking. "
            "Send the `version` you last read; a stale version returns 409 `conflict`."
        ),
        parameters=[IDEMPOTENCY_HEADER],
        request=TransferAdvanceSerializer,
        responses=StockTransferSerializer,
        examples=[
            OpenApiExample("Approve", value={"version": 1, "status": "approved"}, request_only=True),
            OpenApiExample(
                "Stale version",
                value={
                    "code": "conflict",
                    "message": "Transfer TR-000012 was modified (version 3)",
                    "errors": {"version": 3},
                    "status": 409,
                },
                response_only=True,
                status_codes=["409"],
            ),
        ],
    )
    def post(self, request, transfer_id: int):
        ser = TransferAdvanceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        def _handler():
            try:
                transfer = services.advance_transfer(
                    transfer_id=transfer_id,
                    version=data["version"],
                    target_state=data["status"],
                    actor=actor_of(request),
                    can=capability_for(request.user),
                    reason=data["reason"],
                )
            except WarehouseError as exc:
                return error_body(exc)
            return _transfer_body(transfer.id), 200

        return idempotent_response(request, _handler)


# EOF
