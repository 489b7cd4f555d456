from django.contrib import admin

from apps.motorcycles.models import Motorcycle


@admin.register(Motorcycle)
class MotorcycleAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'brand', 'model', 'year', 'chassis_number',
        'retail_price', 'organization_id',
    )
    list_filter = ('brand', 'year')
    search_fields = ('brand', 'model', 'chassis_number')
    readonly_fields = ('created_at', 'updated_at')
