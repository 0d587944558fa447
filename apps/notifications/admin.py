from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'recipient', 'event_type', 'delivery_status', 'attempts', 'is_read', 'created_at')
    list_filter = ('event_type', 'delivery_status', 'is_read')
    search_fields = ('recipient__username', 'title', 'message')
    readonly_fields = ('data', 'delivery_error', 'attempts', 'sent_at', 'created_at')
