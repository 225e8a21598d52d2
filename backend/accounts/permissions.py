from rest_framework import permissions

from accounts.utils import user_has_permission


class HasRolePermission(permissions.BasePermission):
    """Allow access when the caller's roles grant `required_permission`.

    Subclasses set `required_permission` to a RolePermission code such as
    'attendance.review_checkin'. Superusers and ADMIN role holders always pass.
    """
    required_permission = None

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        code = getattr(view, 'required_permission', None) or self.required_permission
        if not code:
            return False
        return user_has_permission(user, code)


class CanReviewCheckIns(HasRolePermission):
    required_permission = 'attendance.review_checkin'


class CanViewCheckIns(HasRolePermission):
    required_permission = 'attendance.view_checkins'


class CanManageBatches(HasRolePermission):
    required_permission = 'enrollment.manage_batches'
