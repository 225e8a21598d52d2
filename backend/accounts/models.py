from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Every person in the institute is a User.

    Students, instructors, finance staff and administrators differ only by
    the roles attached through `UserRole`; what a role may do is the set of
    `Permission` codes granted to it.
    """
    phone = models.CharField('Phone', max_length=32, blank=True, default='')
    roles = models.ManyToManyField('Role', through='UserRole', related_name='users')

    def __str__(self):
        return self.username

    def has_role(self, name: str) -> bool:
        return self.roles.filter(name__iexact=name).exists()

    @property
    def role_names(self):
        return sorted(self.roles.values_list('name', flat=True))


class Role(models.Model):
    STUDENT = 'STUDENT'
    TEACHER = 'TEACHER'
    ACCOUNTANT = 'ACCOUNTANT'
    # holders pass every permission check
    ADMIN = 'ADMIN'

    name = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name


class Permission(models.Model):
    """A capability code such as 'attendance.review_checkin'."""
    code = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ('code',)

    def __str__(self):
        return self.code


class RolePermission(models.Model):
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='role_permissions')
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name='permission_roles')

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['role', 'permission'], name='unique_role_permission'),
        ]

    def __str__(self):
        return f"{self.role.name} -> {self.permission.code}"


class UserRole(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='user_roles')
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='user_roles')
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'role'], name='unique_user_role'),
        ]

    def __str__(self):
        return f"{self.user.username} -> {self.role.name}"
