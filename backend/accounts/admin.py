from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from . import models


class UserRoleInline(admin.TabularInline):
    model = models.UserRole
    extra = 0
    autocomplete_fields = ('role',)
    readonly_fields = ('assigned_at',)


class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'email', 'first_name', 'last_name', 'role_names', 'is_active')
    list_filter = ('is_active', 'is_staff', 'roles')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'phone')
    inlines = (UserRoleInline,)
    fieldsets = DjangoUserAdmin.fieldsets + (
        ('Contact', {'fields': ('phone',)}),
    )


class RolePermissionInline(admin.TabularInline):
    model = models.RolePermission
    extra = 0
    autocomplete_fields = ('permission',)


class RoleAdmin(admin.ModelAdmin):
    list_display = ('name', 'description')
    search_fields = ('name',)
    inlines = (RolePermissionInline,)


class PermissionAdmin(admin.ModelAdmin):
    list_display = ('code', 'description')
    search_fields = ('code',)


admin.site.register(models.User, UserAdmin)
admin.site.register(models.Role, RoleAdmin)
admin.site.register(models.Permission, PermissionAdmin)
