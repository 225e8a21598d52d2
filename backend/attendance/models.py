from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class CheckIn(models.Model):
    """A student's GPS attendance claim for one training session.

    Created once at submission with either `verified` (inside the geofence) or
    `pending` (outside, queued for review). Only the review operation changes
    it afterwards, and only from `pending`. Rows are never deleted.
    """

    class VerificationStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        VERIFIED = 'verified', 'Verified'
        REJECTED = 'rejected', 'Rejected'
        MANUAL_OVERRIDE = 'manual_override', 'Manual Override'

    REVIEW_DECISIONS = (
        VerificationStatus.VERIFIED,
        VerificationStatus.REJECTED,
        VerificationStatus.MANUAL_OVERRIDE,
    )

    session = models.ForeignKey('training.TrainingSession', on_delete=models.PROTECT, related_name='check_ins')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='check_ins')
    latitude = models.FloatField()
    longitude = models.FloatField()
    distance_from_center_meters = models.FloatField()
    is_within_geofence = models.BooleanField()
    verification_status = models.CharField(max_length=20, choices=VerificationStatus.choices, db_index=True)
    verified_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviewed_check_ins')
    verified_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    # raw client metadata, stored as received
    device_info = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True, default='')
    check_in_time = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = 'Check-in'
        verbose_name_plural = 'Check-ins'
        ordering = ('-check_in_time',)
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'student'],
                condition=~Q(verification_status='rejected'),
                name='unique_active_checkin_per_session_student',
            ),
            models.CheckConstraint(condition=Q(distance_from_center_meters__gte=0), name='checkin_distance_non_negative'),
            models.CheckConstraint(
                condition=Q(verification_status__in=['pending', 'verified', 'rejected', 'manual_override']),
                name='checkin_status_valid',
            ),
            models.CheckConstraint(
                condition=Q(latitude__gte=-90) & Q(latitude__lte=90) & Q(longitude__gte=-180) & Q(longitude__lte=180),
                name='checkin_coordinates_valid',
            ),
        ]

    def __str__(self):
        return f"CheckIn session={self.session_id} student={self.student_id} status={self.verification_status}"

    @property
    def is_resolved(self) -> bool:
        return self.verification_status != self.VerificationStatus.PENDING
