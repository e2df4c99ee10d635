from django.contrib import admin
from .models import Apartment


@admin.register(Apartment)
class ApartmentAdmin(admin.ModelAdmin):
    list_display = ['full_label', 'rent', 'booking_status', 'created_at']
    list_filter = ['booking_status', 'block_name']
    search_fields = ['block_name', 'apartment_no']
