from common.choices import LocationType
from rest_framework import serializers

from .models import Location


class LocationSerializer(serializers.ModelSerializer):
    parent_code = serializers.CharField(source="parent.code", read_only=True, default=None)

    class Meta:
        model = Location
        fields = [
            "id",
            "code",
            "name",
            "type",
            "parent",
            "parent_code",
            "capacity",
            "current_utilization",
            "is_pickable",
            "is_receivable",
            "is_active",
            "vehicle_id",
            "license_plate",
            "driver_name",
            "project_id",
            "project_name",
            "address",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class LocationWriteSerializer(serializers.Serializer):
    """Input for creating or updating a location; rules live in the service."""

    code = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=120)
    type = serializers.ChoiceField(choices=LocationType.choices)
    parent = serializers.IntegerField(required=False, allow_null=True)
    capacity = serializers.IntegerField(required=False, allow_null=True)
    current_utilization = serializers.IntegerField(required=False)
    is_pickable = serializers.BooleanField(required=False)
    is_receivable = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=False)
    vehicle_id = serializers.CharField(required=False, allow_blank=True)
    license_plate = serializers.CharField(required=False, allow_blank=True)
    driver_name = serializers.CharField(required=False, allow_blank=True)
    project_id = serializers.CharField(required=False, allow_blank=True)
    project_name = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class UtilizationSerializer(serializers.Serializer):
    value = serializers.IntegerField(min_value=0, max_value=100)


# EOF
