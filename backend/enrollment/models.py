from django.conf import settings
from django.db import models
from django.db.models import F, Q


def _default_batch_capacity():
    return getattr(settings, 'BATCH_CAPACITY', 15)


class Batch(models.Model):
    """A capacity-bounded cohort of students for one program at one location.

    Batches are created lazily by the allocator and numbered 1, 2, 3, ... per
    (program, location). `current_count` is only changed through
    `enrollment.services.allocator`; admin edits touch `start_date` and
    `status` only.
    """

    class Status(models.TextChoices):
        OPEN = 'open', 'Open'
        FULL = 'full', 'Full'
        IN_PROGRESS = 'in_progress', 'In Progress'
        COMPLETED = 'completed', 'Completed'

    program = models.ForeignKey('training.Program', on_delete=models.PROTECT, related_name='batches')
    location = models.ForeignKey('training.Location', on_delete=models.PROTECT, related_name='batches')
    batch_number = models.PositiveIntegerField()
    capacity = models.PositiveIntegerField(default=_default_batch_capacity)
    current_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.OPEN, db_index=True)
    start_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Batch'
        verbose_name_plural = 'Batches'
        ordering = ('program', 'location', 'batch_number')
        constraints = [
            models.UniqueConstraint(fields=['program', 'location', 'batch_number'], name='unique_batch_number_per_program_location'),
            models.CheckConstraint(condition=Q(capacity__gt=0), name='batch_capacity_positive'),
            models.CheckConstraint(condition=Q(current_count__gte=0) & Q(current_count__lte=F('capacity')), name='batch_count_within_capacity'),
            models.CheckConstraint(condition=Q(status__in=['open', 'full', 'in_progress', 'completed']), name='batch_status_valid'),
        ]

    def __str__(self):
        return f"{self.program.code}@{self.location.code} Batch {self.batch_number} ({self.current_count}/{self.capacity})"

    @property
    def is_at_capacity(self) -> bool:
        return self.current_count >= self.capacity

    @property
    def seats_left(self) -> int:
        return max(0, self.capacity - self.current_count)


class BatchSequence(models.Model):
    """Per (program, location) batch-number sequence.

    Allocation locks this row before reading or creating batches, which
    serializes allocations for one key even before its first batch exists.
    """
    program = models.ForeignKey('training.Program', on_delete=models.CASCADE, related_name='+')
    location = models.ForeignKey('training.Location', on_delete=models.CASCADE, related_name='+')
    last_number = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['program', 'location'], name='unique_batch_sequence_per_program_location'),
        ]

    def __str__(self):
        return f"{self.program_id}/{self.location_id}: {self.last_number}"
