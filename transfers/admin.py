from django.contrib import admin

from .models import StockTransfer, TransferLine


class TransferLineInline(admin.TabularInline):
    model = TransferLine
    extra = 0
    readonly_fields = ("item", "lot", "lot_number", "dye_lot", "quantity", "picked_quantity", "received_quantity")
    can_delete = False


@admin.register(StockTransfer)
class StockTransferAdmin(admin.ModelAdmin):
    list_display = ("transfer_number", "from_location", "to_location", "status", "version", "total_quantity")
    list_filter = ("status",)
    search_fields = ("transfer_number", "project_id", "project_name")
    # Status changes must go through the workflow service
    readonly_fields = ("status", "version", "total_items", "total_quantity")
    inlines = [TransferLineInline]


# EOF
