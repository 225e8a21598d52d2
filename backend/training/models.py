from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q


def _default_geofence_radius():
    return getattr(settings, 'DEFAULT_GEOFENCE_RADIUS_METERS', 100)


class Location(models.Model):
    """A physical training center.

    The center point and geofence radius are owned by location management;
    check-in verification only reads them.
    """
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=32, unique=True)
    city = models.CharField(max_length=100, blank=True)
    latitude = models.FloatField(validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)])
    longitude = models.FloatField(validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)])
    geofence_radius_meters = models.PositiveIntegerField(default=_default_geofence_radius)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('name',)
        constraints = [
            models.CheckConstraint(condition=Q(latitude__gte=-90) & Q(latitude__lte=90), name='location_latitude_range'),
            models.CheckConstraint(condition=Q(longitude__gte=-180) & Q(longitude__lte=180), name='location_longitude_range'),
            models.CheckConstraint(condition=Q(geofence_radius_meters__gt=0), name='location_radius_positive'),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"


class Program(models.Model):
    name = models.CharField(max_length=200)
    code = models.CharField(max_length=32, unique=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name


class TrainingSession(models.Model):
    """A scheduled class at a location. Its geofence is the location's."""
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='sessions')
    program = models.ForeignKey(Program, on_delete=models.PROTECT, related_name='sessions')
    title = models.CharField(max_length=200)
    session_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_cancelled = models.BooleanField(default=False)
    cancellation_reason = models.TextField(blank=True)
    max_attendees = models.PositiveIntegerField(default=30)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-session_date', 'start_time')
        indexes = [models.Index(fields=['session_date', 'location'], name='session_date_location_idx')]

    def __str__(self):
        return f"{self.title} @ {self.location.code} on {self.session_date}"

    def clean(self):
        if self.end_time is not None and self.start_time is not None and self.end_time <= self.start_time:
            raise ValidationError({'end_time': 'end_time must be after start_time'})


class Registration(models.Model):
    """A student's enrollment in a program at a location.

    Owned by the registration collaborator. Only `batch` and
    `batch_assigned_at` are written by the allocator; `payment_status` gates
    whether a seat is consumed at all.
    """

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROJECTED = 'projected', 'Projected'
        PAID = 'paid', 'Paid'

    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='registrations')
    program = models.ForeignKey(Program, on_delete=models.PROTECT, related_name='registrations')
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='registrations')
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    batch = models.ForeignKey('enrollment.Batch', on_delete=models.PROTECT, null=True, blank=True, related_name='registrations')
    batch_assigned_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('-created_at',)
        indexes = [models.Index(fields=['program', 'location', 'payment_status'], name='registration_key_status_idx')]

    def __str__(self):
        return f"{self.student} -> {self.program.code}@{self.location.code} ({self.payment_status})"

    @property
    def is_paid(self) -> bool:
        return self.payment_status == self.PaymentStatus.PAID
