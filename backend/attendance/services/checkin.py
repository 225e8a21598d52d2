"""Check-in submission and review.

Lifecycle:
- inside the geofence  -> created `verified` (terminal)
- outside the geofence -> created `pending`, then exactly one review moves it
  to `verified`, `rejected` or `manual_override` (all terminal)

Uniqueness of the active check-in per (session, student) is enforced by a
partial unique constraint; review is a compare-and-swap on `pending`.
"""
import logging
from datetime import date
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q
from django.utils import timezone

from attendance import models as attendance_models
from attendance.services import errors, geo, geofence
from training import models as training_models

logger = logging.getLogger(__name__)

CheckIn = attendance_models.CheckIn
Status = CheckIn.VerificationStatus


def _get_open_session(session_id, today: date) -> training_models.TrainingSession:
    session = training_models.TrainingSession.objects.select_related('location').filter(pk=session_id).first()
    if session is None:
        raise errors.SessionNotFound()
    if session.is_cancelled:
        raise errors.InvalidSession('Session has been cancelled.')
    if session.session_date != today:
        raise errors.InvalidSession('Session is not scheduled for today.')
    return session


def submit_check_in(session_id, student_id, lat, lng, device_info=None,
                    ip_address: Optional[str] = None, user_agent: str = '') -> CheckIn:
    """Record a student's GPS check-in for today's session.

    Raises InvalidCoordinates, SessionNotFound, InvalidSession, StudentNotFound
    or DuplicateCheckIn. The result is `verified` when the reading falls inside
    the location's geofence (boundary inclusive), otherwise `pending`.
    """
    lat, lng = geo.validate_coordinates(lat, lng)
    session = _get_open_session(session_id, timezone.localdate())

    if not get_user_model().objects.filter(pk=student_id).exists():
        raise errors.StudentNotFound()

    active = CheckIn.objects.filter(session_id=session.pk, student_id=student_id).exclude(verification_status=Status.REJECTED)
    if active.exists():
        raise errors.DuplicateCheckIn()

    reading = geofence.evaluate(lat, lng, session.location)
    status = Status.VERIFIED if reading.within else Status.PENDING

    try:
        with transaction.atomic():
            check_in = CheckIn.objects.create(
                session=session,
                student_id=student_id,
                latitude=lat,
                longitude=lng,
                distance_from_center_meters=reading.distance_meters,
                is_within_geofence=reading.within,
                verification_status=status,
                device_info=device_info if device_info is not None else {},
                ip_address=ip_address or None,
                user_agent=(user_agent or '')[:512],
            )
    except IntegrityError:
        # lost the race against a concurrent submission for the same pair
        raise errors.DuplicateCheckIn()

    if reading.within:
        logger.info('Check-in %s verified: session=%s student=%s distance=%.2fm radius=%.0fm',
                    check_in.pk, session.pk, student_id, reading.distance_meters, reading.radius_meters)
    else:
        logger.info('Check-in %s queued for review: session=%s student=%s distance=%.2fm radius=%.0fm',
                    check_in.pk, session.pk, student_id, reading.distance_meters, reading.radius_meters)
    return check_in


def review_check_in(checkin_id, reviewer_id, decision: str, notes: Optional[str] = None) -> CheckIn:
    """Resolve a pending check-in with a human decision.

    Review is final: a check-in that is no longer pending fails with
    AlreadyResolved instead of being overwritten. Distance is not recomputed.
    """
    if decision not in CheckIn.REVIEW_DECISIONS:
        raise errors.InvalidDecision()

    with transaction.atomic():
        updated = CheckIn.objects.filter(pk=checkin_id, verification_status=Status.PENDING).update(
            verification_status=decision,
            verified_by_id=reviewer_id,
            verified_at=timezone.now(),
            notes=notes if notes is not None else F('notes'),
        )
        if not updated:
            current = CheckIn.objects.filter(pk=checkin_id).values_list('verification_status', flat=True).first()
            if current is None:
                raise errors.CheckInNotFound()
            raise errors.AlreadyResolved(status=current)

    logger.info('Check-in %s reviewed by user=%s decision=%s', checkin_id, reviewer_id, decision)
    return CheckIn.objects.select_related('session__location', 'student', 'verified_by').get(pk=checkin_id)


def list_check_ins(day: Optional[date] = None, location_id=None, status: Optional[str] = None):
    """Check-ins for one day (default today), newest first."""
    day = day or timezone.localdate()
    qs = CheckIn.objects.select_related('session__location', 'student', 'verified_by').filter(
        check_in_time__date=day,
    ).order_by('-check_in_time')
    if location_id:
        qs = qs.filter(session__location_id=location_id)
    if status:
        qs = qs.filter(verification_status=status)
    return qs


def student_check_ins(student_id, day: Optional[date] = None):
    day = day or timezone.localdate()
    return CheckIn.objects.select_related('session__location').filter(
        student_id=student_id, check_in_time__date=day,
    ).order_by('-check_in_time')


def check_in_summary(queryset) -> dict:
    return queryset.aggregate(
        total=Count('id'),
        verified=Count('id', filter=Q(verification_status=Status.VERIFIED)),
        pending=Count('id', filter=Q(verification_status=Status.PENDING)),
        rejected=Count('id', filter=Q(verification_status=Status.REJECTED)),
        manual_override=Count('id', filter=Q(verification_status=Status.MANUAL_OVERRIDE)),
        within_geofence=Count('id', filter=Q(is_within_geofence=True)),
    )
