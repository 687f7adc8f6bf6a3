from common.choices import MaterialType
from rest_framework import serializers

from . import services
from .models import AcclimationEntry, AcclimationReading


class AcclimationReadingSerializer(serializers.ModelSerializer):
    in_range = serializers.SerializerMethodField()

    class Meta:
        model = AcclimationReading
        fields = ["id", "timestamp", "temperature", "humidity", "in_range", "notes", "recorded_by"]
        read_only_fields = fields

    def get_in_range(self, obj) -> bool:
        return services.reading_in_range(obj.entry, obj)["in_range"]


class AcclimationEntrySerializer(serializers.ModelSerializer):
    """Entry plus its live progress.

    ``progress`` is computed at the ``now`` passed in the serializer context
    (defaults to the current time), so status may differ from the stored one.
    """

    readings = AcclimationReadingSerializer(many=True, read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = AcclimationEntry
        fields = [
            "id",
            "material_name",
            "material_type",
            "lot_number",
            "project_id",
            "project_name",
            "location",
            "start_time",
            "required_hours",
            "completed_at",
            "status",
            "min_temp",
            "max_temp",
            "min_humidity",
            "max_humidity",
            "started_by",
            "progress",
            "readings",
        ]
        read_only_fields = fields

    def get_progress(self, obj) -> dict:
        return services.progress(obj, now=self.context.get("now"), readings=list(obj.readings.all()))


class InitialReadingSerializer(serializers.Serializer):
    temperature = serializers.DecimalField(max_digits=5, decimal_places=1)
    humidity = serializers.DecimalField(max_digits=5, decimal_places=1, min_value=0, max_value=100)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AcclimationStartSerializer(serializers.Serializer):
    material_name = serializers.CharField(max_length=200)
    material_type = serializers.ChoiceField(choices=MaterialType.choices, default=MaterialType.LVP)
    location = serializers.CharField(max_length=200)
    lot_number = serializers.CharField(required=False, allow_blank=True, default="")
    project_id = serializers.CharField(required=False, allow_blank=True, default="")
    project_name = serializers.CharField(required=False, allow_blank=True, default="")
    required_hours = serializers.IntegerField(required=False, allow_null=True, min_value=1, default=None)
    start_time = serializers.DateTimeField(required=False, allow_null=True, default=None)
    initial_reading = InitialReadingSerializer(required=False, allow_null=True, default=None)


class ReadingCreateSerializer(serializers.Serializer):
    temperature = serializers.DecimalField(max_digits=5, decimal_places=1)
    humidity = serializers.DecimalField(max_digits=5, decimal_places=1, min_value=0, max_value=100)
    timestamp = serializers.DateTimeField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


# EOF
