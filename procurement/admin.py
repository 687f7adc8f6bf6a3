from django.contrib import admin

from .models import Delivery, DeliveryLine, PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineInline(admin.TabularInline):
    model = PurchaseOrderLine
    extra = 0
    readonly_fields = ("total", "received_quantity", "damaged_quantity")


class DeliveryLineInline(admin.TabularInline):
    model = DeliveryLine
    extra = 0
    readonly_fields = ("lot", "received_quantity", "damaged_quantity")


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ("po_number", "vendor_name", "project_name", "status", "total", "expected_delivery_date")
    list_filter = ("status",)
    search_fields = ("po_number", "vendor_name", "project_id", "project_name")
    readonly_fields = ("subtotal", "tax", "total")
    inlines = [PurchaseOrderLineInline]


@admin.register(Delivery)
class DeliveryAdmin(admin.ModelAdmin):
    list_display = ("id", "purchase_order", "vendor_name", "status", "scheduled_date", "checked_in_at", "location")
    list_filter = ("status",)
    search_fields = ("purchase_order__po_number", "vendor_name", "project_name")
    inlines = [DeliveryLineInline]


# EOF
