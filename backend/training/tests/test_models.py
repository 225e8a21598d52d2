from datetime import time

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase, override_settings
from django.utils import timezone

from training import models as training_models


class LocationTests(TestCase):
    @override_settings(DEFAULT_GEOFENCE_RADIUS_METERS=250)
    def test_default_radius_from_settings(self):
        location = training_models.Location.objects.create(name='Hub', code='HUB', latitude=10, longitude=10)
        self.assertEqual(location.geofence_radius_meters, 250)

    def test_coordinates_constrained(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                training_models.Location.objects.create(name='Bad', code='BAD', latitude=95, longitude=10)

    def test_full_clean_rejects_out_of_range(self):
        location = training_models.Location(name='Bad', code='BAD2', latitude=10, longitude=200)
        with self.assertRaises(ValidationError):
            location.full_clean()


class TrainingSessionTests(TestCase):
    def test_end_must_follow_start(self):
        location = training_models.Location.objects.create(name='Hub', code='HUB', latitude=10, longitude=10)
        program = training_models.Program.objects.create(name='Welding', code='WLD')
        session = training_models.TrainingSession(
            location=location, program=program, title='Backwards',
            session_date=timezone.localdate(), start_time=time(12), end_time=time(9),
        )
        with self.assertRaises(ValidationError):
            session.clean()
