from django.contrib import admin
from .models import Booking, Message, Review


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    readonly_fields = ('sender', 'body', 'is_read', 'created_at')
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'worker', 'customer', 'agreed_amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'worker__user__username', 'customer__username')
    readonly_fields = ('job', 'bid', 'worker', 'customer', 'agreed_amount', 'created_at', 'updated_at')
    inlines = [MessageInline]

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'booking', 'sender', 'is_read', 'created_at')
    list_filter = ('is_read',)
    search_fields = ('body', 'sender__username')


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('id', 'booking', 'reviewer', 'reviewee', 'rating', 'created_at')
    list_filter = ('rating',)
    search_fields = ('comment', 'reviewer__username', 'reviewee__username')
    readonly_fields = ('booking', 'reviewer', 'reviewee', 'created_at')
