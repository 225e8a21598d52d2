from django.contrib import admin

from training.models import Registration

from . import models


class BatchRegistrationInline(admin.TabularInline):
    model = Registration
    fk_name = 'batch'
    extra = 0
    can_delete = False
    fields = ('student', 'payment_status', 'paid_at', 'batch_assigned_at')
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class BatchAdmin(admin.ModelAdmin):
    list_display = ('program', 'location', 'batch_number', 'current_count', 'capacity', 'status', 'start_date')
    list_filter = ('status', 'program', 'location')
    search_fields = ('program__name', 'location__name', 'location__code')
    # seat counts and numbering belong to the allocator
    readonly_fields = ('program', 'location', 'batch_number', 'capacity', 'current_count', 'created_at', 'updated_at')
    inlines = (BatchRegistrationInline,)

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


admin.site.register(models.Batch, BatchAdmin)
