from django.contrib import admin

from .models import Location


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "type", "parent", "current_utilization", "is_active", "is_pickable")
    list_filter = ("type", "is_active", "is_receivable")
    search_fields = ("code", "name", "project_name", "license_plate")
    raw_id_fields = ("parent",)


# EOF
