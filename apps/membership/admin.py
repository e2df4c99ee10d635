from django.contrib import admin
from .models import ApartmentRequest, Allocation


@admin.register(ApartmentRequest)
class ApartmentRequestAdmin(admin.ModelAdmin):
    list_display = ['email', 'block_name', 'apartment_no', 'rent', 'status', 'created_at']
    list_filter = ['status', 'block_name']
    search_fields = ['email', 'user_name']


@admin.register(Allocation)
class AllocationAdmin(admin.ModelAdmin):
    list_display = ['email', 'apartment_id', 'allocated_by_email', 'allocated_at']
    search_fields = ['email']
