"""Acclimation timers for material staged on job sites."""

from common.permissions import actor_of
from common.throttling import WAREHOUSE_THROTTLES
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .models import AcclimationEntry
from .serializers import (
    AcclimationEntrySerializer,
    AcclimationReadingSerializer,
    AcclimationStartSerializer,
    ReadingCreateSerializer,
)


def _entry_body(entry_id: int) -> dict:
    entry = AcclimationEntry.objects.prefetch_related("readings").get(id=entry_id)
    return AcclimationEntrySerializer(entry).data


class EntryListCreateView(generics.ListAPIView):
    serializer_class = AcclimationEntrySerializer
    throttle_classes = WAREHOUSE_THROTTLES
    filterset_fields = ["project_id", "material_type", "status", "lot_number"]
    search_fields = ["material_name", "project_name", "location", "lot_number"]
    ordering_fields = ["start_time", "required_hours"]

    def get_throttles(self):
        self.throttle_scope = "warehouse_write" if self.request.method == "POST" else "warehouse"
        return super().get_throttles()

    def get_queryset(self):
        return AcclimationEntry.objects.prefetch_related("readings").order_by("-start_time", "-id")

    @extend_schema(tags=["Acclimation"], summary="List acclimation entries")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Acclimation"],
        summary="Start acclimation",
        description="Hours and ambient ranges default from the material type (LVP 48 h, hardwood 72 h).",
        request=AcclimationStartSerializer,
        responses={201: AcclimationEntrySerializer},
        examples=[
            OpenApiExample(
                "LVP on site",
                value={
                    "material_name": "Coastal Oak LVP",
                    "material_type": "lvp",
                    "location": "Unit 4B living room",
                    "project_id": "PRJ-7",
                    "initial_reading": {"temperature": "70.0", "humidity": "45.0"},
                },
                request_only=True,
            )
        ],
    )
    def post(self, request):
        ser = AcclimationStartSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        if data.get("initial_reading"):
            data["initial_reading"] = dict(data["initial_reading"])
        entry = services.start_acclimation(started_by=actor_of(request), **data)
        return Response(_entry_body(entry.id), status=status.HTTP_201_CREATED)


class EntryDetailView(generics.RetrieveAPIView):
    serializer_class = AcclimationEntrySerializer
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse"
    lookup_url_kwarg = "entry_id"

    def get_queryset(self):
        return AcclimationEntry.objects.prefetch_related("readings")

    @extend_schema(
        tags=["Acclimation"],
        summary="Get acclimation entry",
        examples=[
            OpenApiExample(
                "Halfway",
                value={
                    "id": 5,
                    "material_name": "Coastal Oak LVP",
                    "required_hours": 48,
                    "status": "in-progress",
                    "progress": {
                        "progress": 50.0,
                        "elapsed_hours": 24.0,
                        "remaining_hours": 24.0,
                        "status": "in-progress",
                        "is_ready": False,
                        "out_of_range_readings": [],
                    },
                },
                response_only=True,
            )
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class ReadingCreateView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Acclimation"],
        summary="Record ambient reading",
        description="Out-of-range readings are stored and flagged; they never change the entry status.",
        request=ReadingCreateSerializer,
        responses={201: AcclimationReadingSerializer},
    )
    def post(self, request, entry_id: int):
        ser = ReadingCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        reading = services.record_reading(entry_id=entry_id, recorded_by=actor_of(request), **ser.validated_data)
        return Response(AcclimationReadingSerializer(reading).data, status=status.HTTP_201_CREATED)


class EntryExpireView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Acclimation"],
        summary="Mark acclimation expired",
        description="Only entries that reached readiness can expire; otherwise 409.",
        request=None,
        responses=AcclimationEntrySerializer,
    )
    def post(self, request, entry_id: int):
        entry = services.mark_expired(entry_id=entry_id)
        return Response(_entry_body(entry.id))


class EntryCompleteView(APIView):
    throttle_classes = WAREHOUSE_THROTTLES
    throttle_scope = "warehouse_write"

    @extend_schema(
        tags=["Acclimation"],
        summary="Complete acclimation",
        description="Stamps completion once the required hours have elapsed; otherwise 409.",
        request=None,
        responses=AcclimationEntrySerializer,
    )
    def post(self, request, entry_id: int):
        entry = services.complete_acclimation(entry_id=entry_id)
        return Response(_entry_body(entry.id))


# EOF
