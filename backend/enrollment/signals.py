import logging

from django.db import transaction
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from enrollment.services import allocator
from institute.exceptions import ServiceError
from training.models import Registration

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Registration)
def remember_payment_status(sender, instance: Registration, raw=False, **kwargs):
    if raw or instance.pk is None:
        instance._stored_payment_status = None
        return
    instance._stored_payment_status = (
        sender.objects.filter(pk=instance.pk).values_list('payment_status', flat=True).first()
    )


@receiver(post_save, sender=Registration)
def allocate_on_payment(sender, instance: Registration, created, raw=False, **kwargs):
    """Allocate a batch once a stored registration flips to paid.

    Covers payment confirmations saved outside `allocator.confirm_payment`
    (admin edits, collaborator code saving the model directly). Runs after
    commit so the allocator sees the paid row; `allocate` is idempotent, so
    a flip made by `confirm_payment` itself is a no-op here.
    """
    if raw or created or not instance.is_paid or instance.batch_id is not None:
        return
    previous = getattr(instance, '_stored_payment_status', None)
    if previous is None or previous == Registration.PaymentStatus.PAID:
        return

    registration_id = instance.pk
    program_id = instance.program_id
    location_id = instance.location_id

    def _allocate():
        try:
            allocator.allocate(program_id, location_id, registration_id)
        except ServiceError as exc:
            # left for allocate_paid_registrations to pick up
            logger.error('Allocation after payment failed for registration %s: %s', registration_id, exc)

    transaction.on_commit(_allocate)
