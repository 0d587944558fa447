from django.contrib import admin
from .models import Category, Job, Bid, JobCompletion, Dispute


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'is_active')
    list_filter = ('is_active',)
    prepopulated_fields = {'slug': ('name',)}
    search_fields = ('name',)


class BidInline(admin.TabularInline):
    model = Bid
    extra = 0
    fields = ('worker', 'amount', 'status', 'created_at')
    readonly_fields = fields
    can_delete = False


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'customer', 'category', 'city', 'budget_min', 'budget_max', 'status', 'created_at')
    list_filter = ('status', 'category', 'province')
    search_fields = ('title', 'description', 'city', 'customer__username')
    # Status only changes through the marketplace flows.
    readonly_fields = ('status', 'created_at', 'updated_at')
    inlines = [BidInline]


@admin.register(Bid)
class BidAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'worker', 'amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('job__title', 'worker__user__username')
    readonly_fields = ('status', 'created_at', 'updated_at')


@admin.register(JobCompletion)
class JobCompletionAdmin(admin.ModelAdmin):
    list_display = ('job', 'customer_confirmed', 'worker_confirmed', 'updated_at')


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = ('id', 'job', 'raised_by', 'reason', 'created_at')
    search_fields = ('job__title', 'reason', 'description')
