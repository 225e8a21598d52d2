from django.apps import AppConfig


class EnrollmentConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'enrollment'
    verbose_name = 'Enrollment'

    def ready(self):
        # registers the payment -> allocation receivers
        from . import signals  # noqa: F401
