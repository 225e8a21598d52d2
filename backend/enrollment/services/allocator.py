"""Batch allocation for paid registrations.

Every write path here runs in one `transaction.atomic()` block and takes row
locks with `select_for_update()` in a fixed order:

1. the registration row,
2. the `BatchSequence` row for (program, location),
3. the batch rows being counted.

The sequence row lock serializes allocations per (program, location), so two
callers can never both read "14 of 15" for the same batch. The conditional
UPDATE in `_increment` and the `batch_count_within_capacity` check constraint
back that up at the storage layer.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Case, Count, F, Max, Q, Sum, Value, When
from django.utils import timezone

from enrollment import models as enrollment_models
from enrollment.services import errors
from enrollment.services.locking import run_with_retry
from institute.exceptions import ServiceError
from training import models as training_models

logger = logging.getLogger(__name__)

Batch = enrollment_models.Batch
Registration = training_models.Registration

_UNSET = object()


@dataclass(frozen=True)
class BatchAssignment:
    registration_id: int
    batch_id: int
    batch_number: int
    current_count: int
    capacity: int
    status: str
    created: bool

    @classmethod
    def from_batch(cls, registration_id: int, batch: Batch, created: bool) -> 'BatchAssignment':
        return cls(
            registration_id=registration_id,
            batch_id=batch.pk,
            batch_number=batch.batch_number,
            current_count=batch.current_count,
            capacity=batch.capacity,
            status=batch.status,
            created=created,
        )


@dataclass(frozen=True)
class BatchPreview:
    batch_number: int
    current_count: int
    capacity: int
    paid_count: int


def default_capacity() -> int:
    return int(getattr(settings, 'BATCH_CAPACITY', 15))


def _lock_registration(registration_id) -> Registration:
    try:
        return Registration.objects.select_for_update().get(pk=registration_id)
    except Registration.DoesNotExist:
        raise errors.RegistrationNotFound()


def _lock_sequence(program_id, location_id) -> enrollment_models.BatchSequence:
    enrollment_models.BatchSequence.objects.get_or_create(program_id=program_id, location_id=location_id)
    return enrollment_models.BatchSequence.objects.select_for_update().get(program_id=program_id, location_id=location_id)


def _existing_assignment(registration: Registration) -> BatchAssignment:
    batch = Batch.objects.get(pk=registration.batch_id)
    return BatchAssignment.from_batch(registration.pk, batch, created=False)


def _ensure_unallocated(registration: Registration):
    if registration.batch_id is not None:
        raise errors.AlreadyAllocated(_existing_assignment(registration))


def _increment(batch: Batch) -> Batch:
    """Take one seat in `batch`, flipping it to full when the last seat goes.

    Raises CapacityExceeded when the batch is no longer open or has no seat
    left; in that case a stale open-but-full batch is closed on the way out.
    """
    now = timezone.now()
    updated = Batch.objects.filter(
        pk=batch.pk,
        status=Batch.Status.OPEN,
        current_count__lt=F('capacity'),
    ).update(
        current_count=F('current_count') + 1,
        # both expressions read the pre-update row
        status=Case(
            When(current_count__gte=F('capacity') - 1, then=Value(Batch.Status.FULL)),
            default=Value(Batch.Status.OPEN),
        ),
        updated_at=now,
    )
    if not updated:
        Batch.objects.filter(pk=batch.pk, status=Batch.Status.OPEN, current_count__gte=F('capacity')).update(
            status=Batch.Status.FULL, updated_at=now,
        )
        raise errors.CapacityExceeded(batch_id=batch.pk)

    batch.refresh_from_db(fields=['current_count', 'status', 'updated_at'])
    if batch.status == Batch.Status.FULL:
        logger.info('Batch %s (program=%s location=%s number=%s) is now full at %d/%d',
                    batch.pk, batch.program_id, batch.location_id, batch.batch_number, batch.current_count, batch.capacity)
    return batch


def _release(batch_id) -> None:
    """Give back one seat; a full batch reopens once it drops below capacity."""
    Batch.objects.filter(pk=batch_id, current_count__gt=0).update(
        current_count=F('current_count') - 1,
        status=Case(
            When(status=Batch.Status.FULL, then=Value(Batch.Status.OPEN)),
            default=F('status'),
        ),
        updated_at=timezone.now(),
    )


def _create_next_batch(sequence: enrollment_models.BatchSequence) -> Batch:
    highest = Batch.objects.filter(
        program_id=sequence.program_id, location_id=sequence.location_id,
    ).aggregate(n=Max('batch_number'))['n'] or 0
    number = max(sequence.last_number, highest) + 1
    sequence.last_number = number
    sequence.save(update_fields=['last_number'])

    batch = Batch.objects.create(
        program_id=sequence.program_id,
        location_id=sequence.location_id,
        batch_number=number,
        capacity=default_capacity(),
        current_count=0,
        status=Batch.Status.OPEN,
    )
    logger.info('Created batch %s number=%d for program=%s location=%s', batch.pk, number, sequence.program_id, sequence.location_id)
    return batch


def _take_seat(program_id, location_id) -> Batch:
    """Return the batch that now holds one more seat for (program, location)."""
    sequence = _lock_sequence(program_id, location_id)
    current = (
        Batch.objects.select_for_update()
        .filter(program_id=program_id, location_id=location_id, status=Batch.Status.OPEN)
        .order_by('-batch_number')
        .first()
    )
    if current is not None:
        try:
            return _increment(current)
        except errors.CapacityExceeded:
            logger.info('Batch %s is full, rolling over to the next batch', current.pk)

    return _increment(_create_next_batch(sequence))


def _link(registration: Registration, batch: Batch) -> BatchAssignment:
    now = timezone.now()
    Registration.objects.filter(pk=registration.pk).update(batch=batch, batch_assigned_at=now)
    registration.batch = batch
    registration.batch_assigned_at = now
    logger.info('Registration %s allocated to batch %s (number=%d, %d/%d)',
                registration.pk, batch.pk, batch.batch_number, batch.current_count, batch.capacity)
    return BatchAssignment.from_batch(registration.pk, batch, created=True)


def _allocate_once(program_id, location_id, registration_id) -> BatchAssignment:
    with transaction.atomic():
        registration = _lock_registration(registration_id)
        if str(registration.program_id) != str(program_id) or str(registration.location_id) != str(location_id):
            raise errors.RegistrationMismatch()
        try:
            _ensure_unallocated(registration)
        except errors.AlreadyAllocated as exc:
            return exc.assignment
        if not registration.is_paid:
            raise errors.RegistrationNotPaid()

        batch = _take_seat(registration.program_id, registration.location_id)
        return _link(registration, batch)


def allocate(program_id, location_id, registration_id) -> BatchAssignment:
    """Assign a paid registration to the current open batch for its program/location.

    - Idempotent: a registration that already has a batch gets its existing
      assignment back (`created=False`) and no seat is taken.
    - Creates the next numbered batch when none is open or the open one is full.
    - Conflicts are retried; if they persist AllocationUnavailable is raised.
    """
    return run_with_retry(_allocate_once, program_id, location_id, registration_id)


def _confirm_payment_once(registration_id) -> BatchAssignment:
    with transaction.atomic():
        registration = _lock_registration(registration_id)
        if not registration.is_paid:
            registration.payment_status = Registration.PaymentStatus.PAID
            registration.paid_at = timezone.now()
            registration.save(update_fields=['payment_status', 'paid_at'])
            logger.info('Registration %s marked paid', registration.pk)
        try:
            _ensure_unallocated(registration)
        except errors.AlreadyAllocated as exc:
            return exc.assignment

        batch = _take_seat(registration.program_id, registration.location_id)
        return _link(registration, batch)


def confirm_payment(registration_id) -> BatchAssignment:
    """Entry point for the payment collaborator: mark paid and allocate atomically.

    Safe to call repeatedly for the same registration (webhook redelivery).
    """
    return run_with_retry(_confirm_payment_once, registration_id)


def preview_batch(program_id, location_id, capacity: Optional[int] = None) -> BatchPreview:
    """Estimate the batch a prospective student would land in.

    Display only: derived from the paid-registration count, it reserves
    nothing and may differ from the batch `allocate` eventually assigns.
    """
    capacity = capacity or default_capacity()
    paid_count = Registration.objects.filter(
        program_id=program_id,
        location_id=location_id,
        payment_status=Registration.PaymentStatus.PAID,
    ).count()
    return BatchPreview(
        batch_number=paid_count // capacity + 1,
        current_count=paid_count % capacity,
        capacity=capacity,
        paid_count=paid_count,
    )


@transaction.atomic
def update_batch(batch_id, start_date=_UNSET, status: Optional[str] = None) -> Batch:
    """Admin edit of a batch's start date and/or lifecycle status.

    Seat counts are never edited here. A batch at capacity cannot be forced
    back to open, and a batch with free seats cannot be forced to full.
    """
    try:
        batch = Batch.objects.select_for_update().get(pk=batch_id)
    except Batch.DoesNotExist:
        raise errors.BatchNotFound()

    fields = []
    if status is not None and status != batch.status:
        if status not in Batch.Status.values:
            raise errors.InvalidBatchStatus(f'Unknown batch status: {status}')
        if status == Batch.Status.OPEN and batch.is_at_capacity:
            raise errors.InvalidBatchStatus('A batch at capacity cannot be reopened')
        if status == Batch.Status.FULL and not batch.is_at_capacity:
            raise errors.InvalidBatchStatus('Only a batch at capacity can be marked full')
        logger.info('Batch %s status %s -> %s', batch.pk, batch.status, status)
        batch.status = status
        fields.append('status')
    if start_date is not _UNSET:
        batch.start_date = start_date
        fields.append('start_date')

    if fields:
        batch.save(update_fields=fields + ['updated_at'])
    return batch


def _reassign_once(registration_id, batch_id) -> BatchAssignment:
    with transaction.atomic():
        registration = _lock_registration(registration_id)
        if not registration.is_paid:
            raise errors.RegistrationNotPaid()
        if registration.batch_id is None:
            raise errors.RegistrationNotAllocated()
        if str(registration.batch_id) == str(batch_id):
            return _existing_assignment(registration)

        sequence = _lock_sequence(registration.program_id, registration.location_id)
        locked = {
            b.pk: b for b in Batch.objects.select_for_update().filter(pk__in=[registration.batch_id, batch_id]).order_by('pk')
        }
        target = locked.get(int(batch_id))
        if target is None:
            raise errors.BatchNotFound()
        if target.program_id != sequence.program_id or target.location_id != sequence.location_id:
            raise errors.RegistrationMismatch('Target batch belongs to a different program or location.')
        try:
            target = _increment(target)
        except errors.CapacityExceeded:
            raise errors.BatchUnavailable(batch_id=target.pk)

        previous_id = registration.batch_id
        _release(previous_id)
        logger.info('Registration %s moved from batch %s to batch %s', registration.pk, previous_id, target.pk)
        return _link(registration, target)


def reassign(registration_id, batch_id) -> BatchAssignment:
    """Admin move of an allocated registration into another open batch.

    The source batch gives its seat back (reopening if it was full); the
    target must be open with a free seat, else BatchUnavailable.
    """
    return run_with_retry(_reassign_once, registration_id, batch_id)


def list_batches(program_id=None, location_id=None, status=None):
    qs = Batch.objects.select_related('program', 'location').order_by('program__name', 'location__name', 'batch_number')
    if program_id:
        qs = qs.filter(program_id=program_id)
    if location_id:
        qs = qs.filter(location_id=location_id)
    if status:
        qs = qs.filter(status=status)
    return qs


def batch_summary(queryset) -> dict:
    """Counts per status and total enrolled students for an admin dashboard."""
    agg = queryset.aggregate(
        total=Count('id'),
        open=Count('id', filter=Q(status=Batch.Status.OPEN)),
        full=Count('id', filter=Q(status=Batch.Status.FULL)),
        in_progress=Count('id', filter=Q(status=Batch.Status.IN_PROGRESS)),
        completed=Count('id', filter=Q(status=Batch.Status.COMPLETED)),
        total_students=Sum('current_count'),
    )
    agg['total_students'] = agg['total_students'] or 0
    return agg


def allocate_unassigned_paid(program_id=None, location_id=None, limit: Optional[int] = None):
    """Allocate paid registrations that have no batch yet, oldest payment first.

    Yields (registration_id, BatchAssignment or ServiceError) per registration.
    """
    qs = Registration.objects.filter(
        payment_status=Registration.PaymentStatus.PAID, batch__isnull=True,
    ).order_by('paid_at', 'created_at', 'pk')
    if program_id:
        qs = qs.filter(program_id=program_id)
    if location_id:
        qs = qs.filter(location_id=location_id)
    rows = qs.values_list('pk', 'program_id', 'location_id')
    if limit:
        rows = rows[:limit]
    for reg_id, prog_id, loc_id in list(rows):
        try:
            yield reg_id, allocate(prog_id, loc_id, reg_id)
        except ServiceError as exc:
            yield reg_id, exc
