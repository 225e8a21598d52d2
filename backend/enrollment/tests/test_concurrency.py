import threading
from concurrent.futures import ThreadPoolExecutor
from unittest import mock, skipUnless

from django.contrib.auth import get_user_model
from django.db import OperationalError, connection
from django.test import TransactionTestCase, override_settings

from enrollment import models as enrollment_models
from enrollment.services import allocator, errors, locking
from training import models as training_models

Batch = enrollment_models.Batch
Registration = training_models.Registration


def _setup_key(paid_count):
    location = training_models.Location.objects.create(name='Center', code='BLR', latitude=12.97, longitude=77.59)
    program = training_models.Program.objects.create(name='Welding', code='WLD')
    User = get_user_model()
    regs = [
        Registration.objects.create(
            student=User.objects.create(username=f'student{i}'),
            program=program, location=location, payment_status=Registration.PaymentStatus.PAID,
        )
        for i in range(paid_count)
    ]
    return program, location, regs


@override_settings(BATCH_CAPACITY=15, ALLOCATION_MAX_ATTEMPTS=3, ALLOCATION_RETRY_BACKOFF_SECONDS=0)
class RetryTests(TransactionTestCase):
    """Runs outside a test transaction so each attempt gets its own atomic block."""

    def setUp(self):
        self.program, self.location, self.regs = _setup_key(1)

    def test_gives_up_after_max_attempts(self):
        locking.reset_retry_count()
        with mock.patch.object(allocator, '_take_seat', side_effect=OperationalError('deadlock detected')) as take_seat:
            with self.assertRaises(errors.AllocationUnavailable):
                allocator.allocate(self.program.id, self.location.id, self.regs[0].id)
        self.assertEqual(take_seat.call_count, 3)
        self.assertEqual(locking.retry_count(), 2)

        self.regs[0].refresh_from_db()
        self.assertIsNone(self.regs[0].batch_id)
        self.assertFalse(Batch.objects.exists())

    def test_recovers_from_transient_conflict(self):
        real_take_seat = allocator._take_seat
        calls = []

        def flaky(*args):
            calls.append(args)
            if len(calls) == 1:
                raise OperationalError('could not serialize access')
            return real_take_seat(*args)

        locking.reset_retry_count()
        with mock.patch.object(allocator, '_take_seat', side_effect=flaky):
            assignment = allocator.allocate(self.program.id, self.location.id, self.regs[0].id)

        self.assertEqual(len(calls), 2)
        self.assertEqual(locking.retry_count(), 1)
        self.assertEqual(assignment.batch_number, 1)
        self.assertEqual(Batch.objects.get().current_count, 1)

    def test_validation_errors_are_not_retried(self):
        Registration.objects.filter(pk=self.regs[0].pk).update(payment_status=Registration.PaymentStatus.PENDING)
        with mock.patch.object(allocator, '_take_seat') as take_seat:
            with self.assertRaises(errors.RegistrationNotPaid):
                allocator.allocate(self.program.id, self.location.id, self.regs[0].id)
        take_seat.assert_not_called()


@skipUnless(connection.vendor == 'postgresql', 'row locks need PostgreSQL')
@override_settings(BATCH_CAPACITY=15, ALLOCATION_MAX_ATTEMPTS=10, ALLOCATION_RETRY_BACKOFF_SECONDS=0.01)
class ConcurrentAllocationTests(TransactionTestCase):
    def _allocate_all(self, program, location, regs, workers=8):
        barrier = threading.Barrier(workers)

        def worker(chunk):
            barrier.wait()
            try:
                return [allocator.allocate(program.id, location.id, r.id) for r in chunk]
            finally:
                connection.close()

        chunks = [regs[i::workers] for i in range(workers)]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(worker, chunks))
        return [a for chunk in results for a in chunk]

    def test_parallel_allocations_never_overflow(self):
        program, location, regs = _setup_key(47)
        assignments = self._allocate_all(program, location, regs)

        self.assertEqual(len(assignments), 47)
        batches = list(Batch.objects.filter(program=program, location=location).order_by('batch_number'))
        self.assertEqual([b.batch_number for b in batches], [1, 2, 3, 4])
        self.assertEqual([b.current_count for b in batches], [15, 15, 15, 2])
        self.assertEqual([b.status for b in batches], [Batch.Status.FULL] * 3 + [Batch.Status.OPEN])
        for batch in batches:
            self.assertEqual(batch.registrations.count(), batch.current_count)
        self.assertFalse(Registration.objects.filter(batch__isnull=True).exists())

    def test_parallel_repeats_of_one_registration(self):
        program, location, regs = _setup_key(1)
        assignments = self._allocate_all(program, location, regs * 8)

        self.assertEqual(len({a.batch_id for a in assignments}), 1)
        self.assertEqual(sum(1 for a in assignments if a.created), 1)
        self.assertEqual(Batch.objects.get().current_count, 1)
