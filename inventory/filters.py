from django.db.models import Q
from django_filters import rest_framework as filters

from .models import InventoryTransaction, MaterialLot, StockReservation


class MaterialLotFilterSet(filters.FilterSet):
    location = filters.NumberFilter(method="filter_location")
    sku = filters.CharFilter(field_name="sku", lookup_expr="iexact")
    received_after = filters.IsoDateTimeFilter(field_name="received_date", lookup_expr="gte")

    class Meta:
        model = MaterialLot
        fields = ["item", "status", "qc_status", "dye_lot", "lot_number", "po_number", "sku", "location"]

    def filter_location(self, queryset, name, value):
        # Lots with material currently at the location
        return queryset.filter(splits__location_id=value, splits__quantity__gt=0).distinct()


class InventoryTransactionFilterSet(filters.FilterSet):
    location = filters.NumberFilter(method="filter_location")
    created_after = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_before = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lt")

    class Meta:
        model = InventoryTransaction
        fields = ["type", "item", "lot", "reference_type", "reference_id", "project_id", "location"]

    def filter_location(self, queryset, name, value):
        # Either side of a movement
        return queryset.filter(Q(location_id=value) | Q(to_location_id=value))


class StockReservationFilterSet(filters.FilterSet):
    class Meta:
        model = StockReservation
        fields = ["item", "lot", "location", "state", "source_ref", "project_id"]


# EOF
