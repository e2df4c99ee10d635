from django.contrib import admin
from .models import Coupon, Payment


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ['code', 'discount_percent', 'validity', 'created_at']
    list_filter = ['validity']
    search_fields = ['code', 'description']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['email', 'month', 'rent', 'discount', 'amount', 'coupon_code', 'paid_at']
    list_filter = ['month']
    search_fields = ['email', 'transaction_id', 'coupon_code']
    date_hierarchy = 'paid_at'
    readonly_fields = ['paid_at']
