from django.contrib import admin

from .models import AcclimationEntry, AcclimationReading


class AcclimationReadingInline(admin.TabularInline):
    model = AcclimationReading
    extra = 0


@admin.register(AcclimationEntry)
class AcclimationEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "material_name", "material_type", "project_name", "location", "start_time", "status")
    list_filter = ("material_type", "status")
    search_fields = ("material_name", "lot_number", "project_id", "project_name")
    inlines = [AcclimationReadingInline]


# EOF
