from django.contrib import admin

from . import models


class CheckInAdmin(admin.ModelAdmin):
    list_display = (
        'check_in_time', 'student', 'session', 'distance_from_center_meters',
        'is_within_geofence', 'verification_status', 'verified_by',
    )
    list_filter = ('verification_status', 'is_within_geofence', 'session__location')
    search_fields = ('student__username', 'student__email', 'session__title')
    date_hierarchy = 'check_in_time'
    # reviews go through the API so the pending-only transition holds
    readonly_fields = (
        'session', 'student', 'latitude', 'longitude', 'distance_from_center_meters',
        'is_within_geofence', 'verification_status', 'verified_by', 'verified_at',
        'device_info', 'ip_address', 'user_agent', 'check_in_time',
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


admin.site.register(models.CheckIn, CheckInAdmin)
