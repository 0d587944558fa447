from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Worker


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'phone_number', 'is_worker', 'is_superuser')
    list_filter = ('is_superuser', 'is_active')
    search_fields = ('username', 'email', 'phone_number')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Contact', {'fields': ('phone_number',)}),
    )


@admin.register(Worker)
class WorkerAdmin(admin.ModelAdmin):
    list_display = ('user', 'city', 'province', 'experience_years')
    list_filter = ('province',)
    search_fields = ('user__username', 'user__email', 'city')
    filter_horizontal = ('services',)
