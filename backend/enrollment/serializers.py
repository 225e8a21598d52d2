from rest_framework import serializers

from enrollment import models as enrollment_models
from training import models as training_models


class BatchSerializer(serializers.ModelSerializer):
    program_name = serializers.CharField(source='program.name', read_only=True)
    location_name = serializers.CharField(source='location.name', read_only=True)
    seats_left = serializers.IntegerField(read_only=True)

    class Meta:
        model = enrollment_models.Batch
        fields = (
            'id', 'program', 'program_name', 'location', 'location_name', 'batch_number',
            'capacity', 'current_count', 'seats_left', 'status', 'start_date', 'created_at', 'updated_at',
        )
        read_only_fields = fields


class BatchUpdateSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=enrollment_models.Batch.Status.choices, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide start_date and/or status')
        return attrs


class BatchPreviewQuerySerializer(serializers.Serializer):
    program_id = serializers.IntegerField()
    location_id = serializers.IntegerField()


class BatchListQuerySerializer(serializers.Serializer):
    program_id = serializers.IntegerField(required=False)
    location_id = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=enrollment_models.Batch.Status.choices, required=False)


class BatchAssignmentSerializer(serializers.Serializer):
    registration_id = serializers.IntegerField()
    batch_id = serializers.IntegerField()
    batch_number = serializers.IntegerField()
    current_count = serializers.IntegerField()
    capacity = serializers.IntegerField()
    status = serializers.CharField()
    created = serializers.BooleanField()


class ReassignSerializer(serializers.Serializer):
    batch_id = serializers.IntegerField()


class BatchStudentSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='student.username', read_only=True)
    full_name = serializers.SerializerMethodField()
    email = serializers.EmailField(source='student.email', read_only=True)

    class Meta:
        model = training_models.Registration
        fields = ('id', 'username', 'full_name', 'email', 'payment_status', 'paid_at', 'batch_assigned_at')
        read_only_fields = fields

    def get_full_name(self, obj):
        name = obj.student.get_full_name() if obj.student else ''
        return name or getattr(obj.student, 'username', None)
