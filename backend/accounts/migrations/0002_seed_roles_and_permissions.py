from django.db import migrations


ROLES = [
    ('STUDENT', 'Registered student'),
    ('TEACHER', 'Instructor running training sessions'),
    ('ACCOUNTANT', 'Finance staff confirming payments'),
    ('ADMIN', 'Institute administrator'),
]

PERMISSIONS = [
    ('attendance.view_checkins', 'View geolocation check-ins'),
    ('attendance.review_checkin', 'Review pending geolocation check-ins'),
    ('enrollment.manage_batches', 'Edit batches and reassign students'),
]

GRANTS = {
    'TEACHER': ['attendance.view_checkins', 'attendance.review_checkin'],
    'ACCOUNTANT': ['enrollment.manage_batches'],
}


def seed_roles_and_permissions(apps, schema_editor):
    Role = apps.get_model('accounts', 'Role')
    Permission = apps.get_model('accounts', 'Permission')
    RolePermission = apps.get_model('accounts', 'RolePermission')

    roles = {}
    for name, desc in ROLES:
        roles[name], _ = Role.objects.get_or_create(name=name, defaults={'description': desc})

    perms = {}
    for code, desc in PERMISSIONS:
        perms[code], _ = Permission.objects.get_or_create(code=code, defaults={'description': desc})

    for role_name, codes in GRANTS.items():
        for code in codes:
            RolePermission.objects.get_or_create(role=roles[role_name], permission=perms[code])


def remove_roles_and_permissions(apps, schema_editor):
    Permission = apps.get_model('accounts', 'Permission')
    Permission.objects.filter(code__in=[c for c, _ in PERMISSIONS]).delete()


class Migration(migrations.Migration):
    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_roles_and_permissions, remove_roles_and_permissions),
    ]
