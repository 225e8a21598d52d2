from rest_framework import serializers

from attendance import models as attendance_models

CheckIn = attendance_models.CheckIn


class CheckInSerializer(serializers.ModelSerializer):
    status = serializers.CharField(source='verification_status', read_only=True)
    session_title = serializers.CharField(source='session.title', read_only=True)
    location_name = serializers.CharField(source='session.location.name', read_only=True)
    student_username = serializers.CharField(source='student.username', read_only=True)
    verified_by = serializers.SerializerMethodField()

    class Meta:
        model = CheckIn
        fields = (
            'id', 'session', 'session_title', 'location_name', 'student', 'student_username',
            'latitude', 'longitude', 'distance_from_center_meters', 'is_within_geofence',
            'status', 'verified_by', 'verified_at', 'notes', 'check_in_time',
        )
        read_only_fields = fields

    def get_verified_by(self, obj):
        if not obj.verified_by:
            return None
        return {'id': obj.verified_by.id, 'username': obj.verified_by.username}


class CheckInCreateSerializer(serializers.Serializer):
    session_id = serializers.IntegerField()
    # range checks happen in the service so they surface as invalid_coordinates
    lat = serializers.FloatField()
    lng = serializers.FloatField()
    device_info = serializers.JSONField(required=False, default=dict)
    student_id = serializers.IntegerField(required=False)


class CheckInReviewSerializer(serializers.Serializer):
    decision = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CheckInListQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    location_id = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=CheckIn.VerificationStatus.choices, required=False)


class CheckInExportQuerySerializer(CheckInListQuerySerializer):
    format = serializers.ChoiceField(choices=(('csv', 'CSV'), ('excel', 'Excel')), required=False, default='csv')
