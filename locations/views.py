"""Location registry endpoints plus per-location inventory read models."""

from common.throttling import WAREHOUSE_THROTTLES
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from inventory import selectors as inventory_selectors
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import selectors, services
from .models import Location
from .serializers import LocationSerializer, LocationWriteSerializer, UtilizationSerializer


class LocationListCreateView(generics.ListAPIView):
    """List locations (filter by type, parent, active flag) and create new ones."""

    serializer_class = LocationSerializer
    throttle_classes = WAREHOUSE_THROTTLES
    filterset_fields = ["type", "parent", "is_active", "is_pickable", "is_receivable", "project_id"]
    search_fields = ["code", "name", "project_name", "license_plate"]
    ordering_fields = ["code", "name", "current_utilization"]

    def get_throttles(self):
        self.throttle_scope = "warehouse_write" if self.request.method == "POST" else "warehouse"
        return super().get_throttles()

    def get_queryset(self):
        return Location.objects.select_related("parent").order_by("code")

    @extend_schema(tags=["Locations"], summary="List locations")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Locations"],
        summary="Create location",
        request=LocationWriteSerializer,
        responses={201: LocationSerializer},
        examples=[
            OpenApiExample(
                "Bay",
                value={"code": "A-01-03", "name": "Bay 3", "type": "bay", "parent": 3, "capacity": 500},
                request_only=True,
            )
        ],
    )
    def post(self, request):
        ser = LocationWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        location = services.upsert_location(data=ser.validated_data)
        return Response(LocationSerializer(location).data, status=status.HTTP_201_CREATED)


class LocationDetailView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES

    def get_throttles(self):
        self.throttle_scope = "warehouse" if self.request.method == "GET" else "warehouse_write"
        return super().get_throttles()

    @extend_schema(tags=["Locations"], summary="Get location", responses=LocationSerializer)
    def get(self, request, location_id: int):
        return Response(LocationSerializer(selectors.get_location(location_id)).data)

    @extend_schema(
        tags=["Locations"],
        summary="Update location",
        description="Partial update. Re-parenting that would create a cycle is rejected with 400.",
        request=LocationWriteSerializer,
        responses=LocationSerializer,
    )
    def patch(self, request, location_id: int):
        ser = LocationWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        location = services.upsert_location(data=ser.validated_data, location_id=location_id)
        return Response(LocationSerializer(location).data)

    @extend_schema(
        tags=["Locations"],
        summary="Delete location",
        description="Only unreferenced locations can be deleted; otherwise 409 (deactivate instead).",
        responses={204: None},
    )
    def delete(self, request, location_id: int):
        services.delete_location(location_id=location_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LocationChildrenView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(
        tags=["Locations"],
        summary="List child locations",
        parameters=[
            OpenApiParameter(name="recursive", required=False, type=bool, description="Include the whole subtree")
        ],
        responses=LocationSerializer(many=True),
    )
    def get(self, request, location_id: int):
        if request.query_params.get("recursive") in ("1", "true", "True"):
            children = selectors.get_descendants(location_id)
        else:
            children = selectors.get_children(location_id)
        return Response(LocationSerializer(children, many=True).data)


class LocationDeactivateView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(tags=["Locations"], summary="Deactivate location", request=None, responses=LocationSerializer)
    def post(self, request, location_id: int):
        location = services.deactivate_location(location_id=location_id)
        return Response(LocationSerializer(location).data)


class LocationUtilizationView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Locations"],
        summary="Set location utilization",
        description="Utilization is computed by callers (0-100) and stored as given.",
        request=UtilizationSerializer,
        responses=LocationSerializer,
    )
    def post(self, request, location_id: int):
        ser = UtilizationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        location = services.set_utilization(location_id=location_id, value=ser.validated_data["value"])
        return Response(LocationSerializer(location).data)


class LocationInventorySummaryView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(
        tags=["Locations"],
        summary="Inventory at a location",
        description="Items at the location grouped by SKU with quantities, value and dye-lot variance flags.",
        responses=dict,
        examples=[
            OpenApiExample(
                "Bay with mixed dye lots",
                value={
                    "location_id": 4,
                    "location_code": "WH-A-01",
                    "location_name": "Bay 1",
                    "unique_items": 1,
                    "total_units": "450.00",
                    "total_value": "1912.50",
                    "dye_lot_warnings": 1,
                    "items": [
                        {
                            "item_id": 1,
                            "item_name": "Coastal Oak LVP",
                            "sku": "LVP-COAST-OAK",
                            "total_quantity": "450.00",
                            "lot_count": 2,
                            "dye_lots": ["A1", "B2"],
                            "has_dye_lot_variance": True,
                        }
                    ],
                },
                response_only=True,
            )
        ],
    )
    def get(self, request, location_id: int):
        return Response(inventory_selectors.get_location_inventory_summary(location_id))


class LocationDyeLotVarianceView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(tags=["Locations"], summary="Dye-lot variance warnings at a location", responses=dict)
    def get(self, request, location_id: int):
        warnings = inventory_selectors.check_dye_lot_variances(location_id)
        return Response([w.as_dict() for w in warnings])


class LocationActivityView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"

    @extend_schema(
        tags=["Locations"],
        summary="Recent activity at a location",
        parameters=[OpenApiParameter(name="days", required=False, type=int, description="Window in days (30)")],
        responses=dict,
    )
    def get(self, request, location_id: int):
        try:
            days = max(1, int(request.query_params.get("days", 30)))
        except ValueError:
            days = 30
        return Response(inventory_selectors.get_location_activity_metrics(location_id, day_range=days))


# EOF
