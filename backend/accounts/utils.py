from typing import Set

from .models import Role, RolePermission


def get_user_permissions(user) -> Set[str]:
    """Permission codes granted to *user* through any of their roles."""
    if user is None or not getattr(user, 'pk', None):
        return set()

    codes = RolePermission.objects.filter(role__user_roles__user=user).values_list('permission__code', flat=True).distinct()
    # codes are entered by hand in the admin
    return {code.strip() for code in codes if code}


def is_admin_user(user) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    if user.is_superuser:
        return True
    return user.roles.filter(name__iexact=Role.ADMIN).exists()


def user_has_permission(user, code: str) -> bool:
    """True for admins, otherwise only when one of the user's roles grants `code`."""
    if is_admin_user(user):
        return True
    return code in get_user_permissions(user)
