"""Admin registrations for inventory app.

Quantities are read-only here; corrections go through the adjust endpoint so
the audit trail stays complete.
"""

from django.contrib import admin

from .models import InventoryItem, InventoryTransaction, LotLocation, MaterialLot, StockReservation


class LotLocationInline(admin.TabularInline):
    model = LotLocation
    extra = 0
    readonly_fields = ("location", "quantity")
    can_delete = False


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("sku", "name", "unit", "category", "stock", "reserved", "updated_at")
    search_fields = ("sku", "name")
    list_filter = ("category",)
    readonly_fields = ("stock", "reserved")


@admin.register(MaterialLot)
class MaterialLotAdmin(admin.ModelAdmin):
    list_display = ("lot_number", "sku", "dye_lot", "current_quantity", "original_quantity", "status", "qc_status")
    list_filter = ("status", "qc_status")
    search_fields = ("lot_number", "dye_lot", "sku", "po_number")
    readonly_fields = ("original_quantity", "current_quantity")
    inlines = [LotLocationInline]


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "type", "item", "lot", "location", "to_location", "quantity", "reference_id", "created_at")
    list_filter = ("type", "reference_type")
    search_fields = ("item__sku", "lot__lot_number", "reference_id", "project_id")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockReservation)
class StockReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "item", "lot", "location", "quantity", "state", "source_ref", "created_at")
    list_filter = ("state",)
    search_fields = ("item__sku", "source_ref", "project_id")


# EOF
