from common.choices import TransferStatus
from rest_framework import serializers

from .models import StockTransfer, TransferLine


class TransferLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransferLine
        fields = [
            "id",
            "item",
            "lot",
            "item_name",
            "sku",
            "unit",
            "lot_number",
            "dye_lot",
            "quantity",
            "picked_quantity",
            "received_quantity",
            "notes",
        ]
        read_only_fields = fields


class StockTransferSerializer(serializers.ModelSerializer):
    """Transfer with lines; ``version`` must be echoed back to advance it."""

    from_location_code = serializers.CharField(source="from_location.code", read_only=True)
    to_location_code = serializers.CharField(source="to_location.code", read_only=True)
    lines = TransferLineSerializer(many=True, read_only=True)

    class Meta:
        model = StockTransfer
        fields = [
            "id",
            "transfer_number",
            "from_location",
            "from_location_code",
            "to_location",
            "to_location_code",
            "project_id",
            "project_name",
            "status",
            "version",
            "total_items",
            "total_quantity",
            "created_by",
            "approved_by",
            "approved_at",
            "picked_by",
            "picked_at",
            "shipped_at",
            "received_by",
            "received_at",
            "cancelled_at",
            "cancel_reason",
            "notes",
            "created_at",
            "lines",
        ]
        read_only_fields = fields


class TransferLineInputSerializer(serializers.Serializer):
    lot_id = serializers.IntegerField()
    item_id = serializers.IntegerField(required=False)
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class TransferCreateSerializer(serializers.Serializer):
    from_location = serializers.IntegerField()
    to_location = serializers.IntegerField()
    project_id = serializers.CharField(required=False, allow_blank=True, default="")
    project_name = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    lines = TransferLineInputSerializer(many=True, allow_empty=False)


class TransferAdvanceSerializer(serializers.Serializer):
    version = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=TransferStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# EOF
