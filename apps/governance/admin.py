from django.contrib import admin
from .models import Announcement, AuditLog


@admin.register(Announcement)
class AnnouncementAdmin(admin.ModelAdmin):
    list_display = ['title', 'created_by', 'created_at']
    search_fields = ['title', 'description']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'target_type', 'target_label', 'performed_by_email', 'performed_at']
    list_filter = ['action', 'target_type']
    search_fields = ['target_label', 'performed_by_email']
    readonly_fields = [f.name for f in AuditLog._meta.fields]
