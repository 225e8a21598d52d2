from django.contrib import admin, messages

from institute.exceptions import ServiceError

from . import models


class LocationAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'city', 'latitude', 'longitude', 'geofence_radius_meters', 'is_active')
    list_filter = ('is_active', 'city')
    search_fields = ('name', 'code', 'city')


class ProgramAdmin(admin.ModelAdmin):
    list_display = ('name', 'code', 'is_active')
    search_fields = ('name', 'code')


class TrainingSessionAdmin(admin.ModelAdmin):
    list_display = ('title', 'program', 'location', 'session_date', 'start_time', 'end_time', 'is_cancelled')
    list_filter = ('location', 'program', 'is_cancelled')
    date_hierarchy = 'session_date'
    search_fields = ('title',)


@admin.action(description='Confirm payment and allocate a batch')
def confirm_payment(modeladmin, request, queryset):
    from enrollment.services import allocator

    for registration in queryset.order_by('pk'):
        try:
            assignment = allocator.confirm_payment(registration.pk)
        except ServiceError as exc:
            modeladmin.message_user(request, f'Registration {registration.pk}: {exc}', level=messages.ERROR)
            continue
        modeladmin.message_user(
            request,
            f'Registration {registration.pk} -> batch {assignment.batch_number} ({assignment.current_count}/{assignment.capacity})',
        )


class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('id', 'student', 'program', 'location', 'payment_status', 'batch', 'batch_assigned_at', 'created_at')
    list_filter = ('payment_status', 'program', 'location')
    search_fields = ('student__username', 'student__email')
    # batch links are written by the allocator only
    readonly_fields = ('batch', 'batch_assigned_at', 'paid_at', 'created_at')
    actions = (confirm_payment,)


admin.site.register(models.Location, LocationAdmin)
admin.site.register(models.Program, ProgramAdmin)
admin.site.register(models.TrainingSession, TrainingSessionAdmin)
admin.site.register(models.Registration, RegistrationAdmin)
