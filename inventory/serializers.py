"""Serializers for the inventory app.

Read serializers expose items, lots (with their per-location splits),
transactions and reservations. Write serializers only shape input; quantity
rules are enforced by ``inventory.services``.
"""

from common.choices import AdjustmentReason, QCStatus
from rest_framework import serializers

from .models import InventoryItem, InventoryTransaction, LotLocation, MaterialLot, StockReservation


class InventoryItemSerializer(serializers.ModelSerializer):
    available = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryItem
        fields = ["id", "sku", "name", "unit", "category", "stock", "reserved", "available", "updated_at"]
        read_only_fields = ["stock", "reserved", "available", "updated_at"]


class LotSplitSerializer(serializers.ModelSerializer):
    location_code = serializers.CharField(source="location.code", read_only=True)

    class Meta:
        model = LotLocation
        fields = ["location", "location_code", "quantity"]
        read_only_fields = fields


class MaterialLotSerializer(serializers.ModelSerializer):
    """A lot with where it sits.

    Splits with zero quantity are left out of ``locations``.
    """

    locations = serializers.SerializerMethodField()

    class Meta:
        model = MaterialLot
        fields = [
            "id",
            "item",
            "item_name",
            "sku",
            "lot_number",
            "dye_lot",
            "original_quantity",
            "current_quantity",
            "unit",
            "unit_cost",
            "vendor_id",
            "vendor_name",
            "received_date",
            "delivery_ref",
            "po_number",
            "expiration_date",
            "qc_status",
            "qc_notes",
            "status",
            "notes",
            "locations",
        ]
        read_only_fields = fields

    def get_locations(self, obj) -> list:
        splits = [s for s in obj.splits.all() if s.quantity > 0]
        return LotSplitSerializer(splits, many=True).data


class InventoryTransactionSerializer(serializers.ModelSerializer):
    location_code = serializers.CharField(source="location.code", read_only=True, default=None)
    to_location_code = serializers.CharField(source="to_location.code", read_only=True, default=None)
    lot_number = serializers.CharField(source="lot.lot_number", read_only=True, default=None)

    class Meta:
        model = InventoryTransaction
        fields = [
            "id",
            "type",
            "item",
            "item_name",
            "lot",
            "lot_number",
            "location",
            "location_code",
            "to_location",
            "to_location_code",
            "quantity",
            "unit",
            "unit_cost",
            "total_cost",
            "reference_type",
            "reference_id",
            "project_id",
            "project_name",
            "performed_by",
            "reason",
            "notes",
            "balance_after",
            "created_at",
        ]
        read_only_fields = fields


class StockReservationSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockReservation
        fields = [
            "id",
            "item",
            "lot",
            "location",
            "quantity",
            "source_ref",
            "project_id",
            "project_name",
            "state",
            "created_at",
        ]
        read_only_fields = fields


class ItemCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = InventoryItem
        fields = ["sku", "name", "unit", "category"]


class ReceiveLotSerializer(serializers.Serializer):
    item = serializers.IntegerField()
    location = serializers.IntegerField()
    lot_number = serializers.CharField(max_length=64)
    dye_lot = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    vendor_id = serializers.CharField(required=False, allow_blank=True, default="")
    vendor_name = serializers.CharField(required=False, allow_blank=True, default="")
    po_number = serializers.CharField(required=False, allow_blank=True, default="")
    delivery_ref = serializers.CharField(required=False, allow_blank=True, default="")
    expiration_date = serializers.DateField(required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class MoveLotSerializer(serializers.Serializer):
    from_location = serializers.IntegerField()
    to_location = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AdjustLotSerializer(serializers.Serializer):
    location = serializers.IntegerField()
    # Signed; negative removes material from the split
    delta = serializers.DecimalField(max_digits=14, decimal_places=2)
    reason = serializers.ChoiceField(choices=AdjustmentReason.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class IssueLotSerializer(serializers.Serializer):
    location = serializers.IntegerField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2)
    project_id = serializers.CharField(required=False, allow_blank=True, default="")
    project_name = serializers.CharField(required=False, allow_blank=True, default="")
    source_ref = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class QCStatusSerializer(serializers.Serializer):
    qc_status = serializers.ChoiceField(choices=QCStatus.choices)
    qc_notes = serializers.CharField(required=False, allow_blank=True, default="")


# EOF
