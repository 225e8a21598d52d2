from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings

from enrollment import models as enrollment_models
from training import admin as training_admin
from training import models as training_models

Batch = enrollment_models.Batch
Registration = training_models.Registration


@override_settings(BATCH_CAPACITY=15)
class PaymentFlipAllocationTests(TestCase):
    def setUp(self):
        self.location = training_models.Location.objects.create(name='Center', code='BLR', latitude=12.97, longitude=77.59)
        self.program = training_models.Program.objects.create(name='Welding', code='WLD')
        self.registration = Registration.objects.create(
            student=get_user_model().objects.create(username='student1'),
            program=self.program, location=self.location,
        )

    def test_saving_as_paid_allocates_a_batch(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.registration.payment_status = Registration.PaymentStatus.PAID
            self.registration.save()

        self.registration.refresh_from_db()
        self.assertIsNotNone(self.registration.batch_id)
        batch = Batch.objects.get()
        self.assertEqual((batch.batch_number, batch.current_count), (1, 1))

    def test_other_status_changes_do_not_allocate(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.registration.payment_status = Registration.PaymentStatus.PROJECTED
            self.registration.save()
        self.assertEqual(callbacks, [])
        self.assertFalse(Batch.objects.exists())

    def test_resaving_a_paid_registration_is_ignored(self):
        with self.captureOnCommitCallbacks(execute=True):
            self.registration.payment_status = Registration.PaymentStatus.PAID
            self.registration.save()

        self.registration.refresh_from_db()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.registration.save()
        self.assertEqual(callbacks, [])
        self.assertEqual(Batch.objects.get().current_count, 1)

    def test_registration_created_paid_is_left_to_backfill(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            Registration.objects.create(
                student=get_user_model().objects.create(username='student2'),
                program=self.program, location=self.location, payment_status=Registration.PaymentStatus.PAID,
            )
        self.assertEqual(callbacks, [])

    def test_admin_action_confirms_and_allocates(self):
        modeladmin = mock.Mock()
        with self.captureOnCommitCallbacks(execute=True):
            training_admin.confirm_payment(modeladmin, mock.Mock(), Registration.objects.filter(pk=self.registration.pk))

        self.registration.refresh_from_db()
        self.assertTrue(self.registration.is_paid)
        self.assertEqual(Batch.objects.get().current_count, 1)
        self.assertIn('batch 1', modeladmin.message_user.call_args[0][1])
