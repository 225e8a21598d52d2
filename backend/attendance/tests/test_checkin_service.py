import math
from datetime import time, timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from attendance import models as attendance_models
from attendance.services import checkin, errors, geo
from training import models as training_models

CheckIn = attendance_models.CheckIn

CENTER_LAT = 12.9716
CENTER_LNG = 77.5946


def north_of_center(meters):
    """A reading `meters` due north of the test location."""
    return CENTER_LAT + math.degrees(meters / geo.EARTH_RADIUS_METERS), CENTER_LNG


class CheckInServiceTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.student = User.objects.create(username='student1', first_name='Asha', last_name='Rao')
        self.other_student = User.objects.create(username='student2')
        self.reviewer = User.objects.create(username='reviewer')

        self.location = training_models.Location.objects.create(
            name='Central Campus', code='CEN', latitude=CENTER_LAT, longitude=CENTER_LNG, geofence_radius_meters=150,
        )
        self.program = training_models.Program.objects.create(name='Welding', code='WLD')
        self.session = training_models.TrainingSession.objects.create(
            location=self.location, program=self.program, title='Morning Lab',
            session_date=timezone.localdate(), start_time=time(9, 0), end_time=time(12, 0),
        )

    def test_inside_geofence_is_verified(self):
        lat, lng = north_of_center(140)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng, device_info={'os': 'android'})

        self.assertEqual(ci.verification_status, CheckIn.VerificationStatus.VERIFIED)
        self.assertTrue(ci.is_within_geofence)
        self.assertAlmostEqual(ci.distance_from_center_meters, 140.0, delta=0.01)
        self.assertEqual(ci.device_info, {'os': 'android'})
        self.assertIsNone(ci.verified_by)

    def test_outside_geofence_is_pending_then_rejected(self):
        lat, lng = north_of_center(300)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        self.assertEqual(ci.verification_status, CheckIn.VerificationStatus.PENDING)
        self.assertFalse(ci.is_within_geofence)

        reviewed = checkin.review_check_in(ci.id, self.reviewer.id, 'rejected', notes='Not on campus')
        self.assertEqual(reviewed.verification_status, CheckIn.VerificationStatus.REJECTED)
        self.assertEqual(reviewed.verified_by_id, self.reviewer.id)
        self.assertIsNotNone(reviewed.verified_at)
        self.assertEqual(reviewed.notes, 'Not on campus')
        # distance is not recomputed by review
        self.assertEqual(reviewed.distance_from_center_meters, ci.distance_from_center_meters)

    def test_distance_is_stored_rounded(self):
        lat, lng = north_of_center(212.34567)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        self.assertEqual(ci.distance_from_center_meters, round(ci.distance_from_center_meters, 2))

    def test_stored_distance_matches_classification(self):
        ci = checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(150.004))
        ci.refresh_from_db()
        self.assertEqual(ci.distance_from_center_meters, 150.0)
        self.assertTrue(ci.is_within_geofence)
        self.assertEqual(ci.verification_status, CheckIn.VerificationStatus.VERIFIED)

    def test_second_review_is_rejected(self):
        lat, lng = north_of_center(300)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        checkin.review_check_in(ci.id, self.reviewer.id, 'manual_override')

        with self.assertRaises(errors.AlreadyResolved) as ctx:
            checkin.review_check_in(ci.id, self.reviewer.id, 'rejected')
        self.assertEqual(ctx.exception.extra['status'], 'manual_override')

        ci.refresh_from_db()
        self.assertEqual(ci.verification_status, CheckIn.VerificationStatus.MANUAL_OVERRIDE)

    def test_verified_check_in_cannot_be_reviewed(self):
        lat, lng = north_of_center(10)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        with self.assertRaises(errors.AlreadyResolved):
            checkin.review_check_in(ci.id, self.reviewer.id, 'rejected')

    def test_review_keeps_existing_notes_when_none_given(self):
        lat, lng = north_of_center(300)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        CheckIn.objects.filter(pk=ci.pk).update(notes='gps drift reported')

        reviewed = checkin.review_check_in(ci.id, self.reviewer.id, 'verified')
        self.assertEqual(reviewed.notes, 'gps drift reported')

    def test_review_invalid_decision(self):
        lat, lng = north_of_center(300)
        ci = checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        for decision in ('pending', 'approved', ''):
            with self.subTest(decision=decision):
                with self.assertRaises(errors.InvalidDecision):
                    checkin.review_check_in(ci.id, self.reviewer.id, decision)

    def test_review_missing_check_in(self):
        with self.assertRaises(errors.CheckInNotFound):
            checkin.review_check_in(999999, self.reviewer.id, 'verified')

    def test_duplicate_after_verified(self):
        lat, lng = north_of_center(20)
        checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        with self.assertRaises(errors.DuplicateCheckIn):
            checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        self.assertEqual(CheckIn.objects.filter(session=self.session, student=self.student).count(), 1)

    def test_duplicate_while_pending(self):
        lat, lng = north_of_center(400)
        checkin.submit_check_in(self.session.id, self.student.id, lat, lng)
        with self.assertRaises(errors.DuplicateCheckIn):
            checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(5))

    def test_retry_allowed_after_rejection(self):
        ci = checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(400))
        checkin.review_check_in(ci.id, self.reviewer.id, 'rejected')

        again = checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(30))
        self.assertEqual(again.verification_status, CheckIn.VerificationStatus.VERIFIED)
        self.assertEqual(CheckIn.objects.filter(session=self.session, student=self.student).count(), 2)

    def test_other_students_are_independent(self):
        checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(20))
        ci = checkin.submit_check_in(self.session.id, self.other_student.id, *north_of_center(20))
        self.assertEqual(ci.verification_status, CheckIn.VerificationStatus.VERIFIED)

    def test_cancelled_session(self):
        self.session.is_cancelled = True
        self.session.cancellation_reason = 'Holiday'
        self.session.save()
        with self.assertRaises(errors.InvalidSession):
            checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(20))

    def test_session_not_today(self):
        self.session.session_date = timezone.localdate() - timedelta(days=1)
        self.session.save()
        with self.assertRaises(errors.InvalidSession):
            checkin.submit_check_in(self.session.id, self.student.id, *north_of_center(20))

    def test_missing_session_and_student(self):
        with self.assertRaises(errors.SessionNotFound):
            checkin.submit_check_in(999999, self.student.id, *north_of_center(20))
        with self.assertRaises(errors.StudentNotFound):
            checkin.submit_check_in(self.session.id, 999999, *north_of_center(20))

    def test_invalid_coordinates_create_nothing(self):
        with self.assertRaises(errors.InvalidCoordinates):
            checkin.submit_check_in(self.session.id, self.student.id, 95.0, CENTER_LNG)
        self.assertFalse(CheckIn.objects.exists())

    def test_records_client_metadata(self):
        ci = checkin.submit_check_in(
            self.session.id, self.student.id, *north_of_center(20),
            ip_address='10.0.0.7', user_agent='Mozilla/5.0',
        )
        ci.refresh_from_db()
        self.assertEqual(ci.ip_address, '10.0.0.7')
        self.assertEqual(ci.user_agent, 'Mozilla/5.0')


class CheckInListingTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.reviewer = User.objects.create(username='reviewer')
        program = training_models.Program.objects.create(name='Welding', code='WLD')
        self.north = training_models.Location.objects.create(
            name='North', code='N', latitude=CENTER_LAT, longitude=CENTER_LNG, geofence_radius_meters=150,
        )
        self.south = training_models.Location.objects.create(
            name='South', code='S', latitude=CENTER_LAT, longitude=CENTER_LNG, geofence_radius_meters=150,
        )
        today = timezone.localdate()
        self.north_session = training_models.TrainingSession.objects.create(
            location=self.north, program=program, title='N1', session_date=today, start_time=time(9), end_time=time(10),
        )
        self.south_session = training_models.TrainingSession.objects.create(
            location=self.south, program=program, title='S1', session_date=today, start_time=time(9), end_time=time(10),
        )
        self.students = [User.objects.create(username=f's{i}') for i in range(4)]

        checkin.submit_check_in(self.north_session.id, self.students[0].id, *north_of_center(10))
        checkin.submit_check_in(self.north_session.id, self.students[1].id, *north_of_center(500))
        pending = checkin.submit_check_in(self.south_session.id, self.students[2].id, *north_of_center(500))
        checkin.submit_check_in(self.south_session.id, self.students[3].id, *north_of_center(500))
        checkin.review_check_in(pending.id, self.reviewer.id, 'rejected')

    def test_summary_for_today(self):
        summary = checkin.check_in_summary(checkin.list_check_ins())
        self.assertEqual(summary, {
            'total': 4,
            'verified': 1,
            'pending': 2,
            'rejected': 1,
            'manual_override': 0,
            'within_geofence': 1,
        })

    def test_filters(self):
        self.assertEqual(checkin.list_check_ins(location_id=self.north.id).count(), 2)
        self.assertEqual(checkin.list_check_ins(status='pending').count(), 2)
        self.assertEqual(checkin.list_check_ins(location_id=self.south.id, status='rejected').count(), 1)
        yesterday = timezone.localdate() - timedelta(days=1)
        self.assertEqual(checkin.list_check_ins(day=yesterday).count(), 0)

    def test_student_listing(self):
        mine = checkin.student_check_ins(self.students[0].id)
        self.assertEqual([c.session_id for c in mine], [self.north_session.id])
