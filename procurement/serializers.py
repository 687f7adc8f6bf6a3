"""Serializers for purchase orders and deliveries."""

from rest_framework import serializers

from .models import Delivery, DeliveryLine, PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineSerializer(serializers.ModelSerializer):
    outstanding = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseOrderLine
        fields = [
            "id",
            "material_name",
            "sku",
            "quantity",
            "unit",
            "unit_cost",
            "total",
            "lot_number",
            "received_quantity",
            "damaged_quantity",
            "outstanding",
        ]
        read_only_fields = fields


class PurchaseOrderSerializer(serializers.ModelSerializer):
    lines = PurchaseOrderLineSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "vendor_id",
            "vendor_name",
            "project_id",
            "project_name",
            "status",
            "subtotal",
            "tax",
            "total",
            "created_by",
            "submitted_date",
            "confirmed_date",
            "cancelled_date",
            "expected_delivery_date",
            "notes",
            "created_at",
            "lines",
        ]
        read_only_fields = fields


class PurchaseOrderLineInputSerializer(serializers.Serializer):
    material_name = serializers.CharField(max_length=200)
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=14, decimal_places=2)
    unit = serializers.CharField(max_length=16, required=False, default="sqft")
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    lot_number = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class PurchaseOrderCreateSerializer(serializers.Serializer):
    vendor_name = serializers.CharField(max_length=200)
    vendor_id = serializers.CharField(required=False, allow_blank=True, default="")
    project_id = serializers.CharField(required=False, allow_blank=True, default="")
    project_name = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    expected_delivery_date = serializers.DateField(required=False, allow_null=True, default=None)
    submit = serializers.BooleanField(required=False, default=False)
    lines = PurchaseOrderLineInputSerializer(many=True, allow_empty=False)


class DeliveryLineSerializer(serializers.ModelSerializer):
    accepted_quantity = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = DeliveryLine
        fields = [
            "id",
            "po_line",
            "lot",
            "material_name",
            "sku",
            "ordered_quantity",
            "received_quantity",
            "damaged_quantity",
            "accepted_quantity",
            "lot_number",
            "dye_lot",
            "unit",
        ]
        read_only_fields = fields


class DeliverySerializer(serializers.ModelSerializer):
    po_number = serializers.CharField(source="purchase_order.po_number", read_only=True)
    location_code = serializers.CharField(source="location.code", read_only=True, default=None)
    lines = DeliveryLineSerializer(many=True, read_only=True)

    class Meta:
        model = Delivery
        fields = [
            "id",
            "purchase_order",
            "po_number",
            "vendor_name",
            "project_name",
            "status",
            "scheduled_date",
            "estimated_time",
            "actual_arrival",
            "checked_in_at",
            "checked_in_by",
            "location",
            "location_code",
            "issues",
            "photos",
            "notes",
            "lines",
        ]
        read_only_fields = fields


class DeliveryScheduleSerializer(serializers.Serializer):
    purchase_order = serializers.IntegerField()
    scheduled_date = serializers.DateField(required=False, allow_null=True, default=None)
    estimated_time = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[Delivery.STATUS_IN_TRANSIT, Delivery.STATUS_ARRIVED])


class ReceivedLineSerializer(serializers.Serializer):
    po_line_id = serializers.IntegerField(required=False)
    material_name = serializers.CharField(required=False, allow_blank=True, default="")
    sku = serializers.CharField(required=False, allow_blank=True, default="")
    received_quantity = serializers.DecimalField(max_digits=14, decimal_places=2)
    damaged_quantity = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    lot_number = serializers.CharField(required=False, allow_blank=True, default="")
    dye_lot = serializers.CharField(required=False, allow_blank=True, default="")


class CheckInSerializer(serializers.Serializer):
    location = serializers.IntegerField()
    received_lines = ReceivedLineSerializer(many=True, allow_empty=False)
    issues = serializers.CharField(required=False, allow_blank=True, default="")
    photos = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


# EOF
