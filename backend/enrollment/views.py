from dataclasses import asdict

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import CanManageBatches
from enrollment import models as enrollment_models
from enrollment.serializers import (
    BatchAssignmentSerializer,
    BatchListQuerySerializer,
    BatchPreviewQuerySerializer,
    BatchSerializer,
    BatchStudentSerializer,
    BatchUpdateSerializer,
    ReassignSerializer,
)
from enrollment.services import allocator


class BatchPreviewView(APIView):
    """Pre-payment estimate of the batch a new student would join."""
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        query = BatchPreviewQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        preview = allocator.preview_batch(query.validated_data['program_id'], query.validated_data['location_id'])
        return Response({
            'batch_number': preview.batch_number,
            'current_count': preview.current_count,
            'capacity': preview.capacity,
        })


class BatchListView(APIView):
    permission_classes = (CanManageBatches,)

    def get(self, request, *args, **kwargs):
        query = BatchListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        qs = allocator.list_batches(**query.validated_data)
        return Response({
            'summary': allocator.batch_summary(qs),
            'results': BatchSerializer(qs, many=True).data,
        })


class BatchDetailView(APIView):
    permission_classes = (CanManageBatches,)

    def get(self, request, id: int, *args, **kwargs):
        batch = get_object_or_404(enrollment_models.Batch.objects.select_related('program', 'location'), pk=id)
        return Response(BatchSerializer(batch).data)

    def patch(self, request, id: int, *args, **kwargs):
        serializer = BatchUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        batch = allocator.update_batch(id, **serializer.validated_data)
        batch = enrollment_models.Batch.objects.select_related('program', 'location').get(pk=batch.pk)
        return Response(BatchSerializer(batch).data)


class BatchStudentsView(APIView):
    permission_classes = (CanManageBatches,)

    def get(self, request, id: int, *args, **kwargs):
        batch = get_object_or_404(enrollment_models.Batch, pk=id)
        qs = batch.registrations.select_related('student').order_by('batch_assigned_at', 'pk')
        return Response({
            'batch_id': batch.id,
            'batch_number': batch.batch_number,
            'students': BatchStudentSerializer(qs, many=True).data,
        })


class RegistrationReassignView(APIView):
    permission_classes = (CanManageBatches,)

    def post(self, request, id: int, *args, **kwargs):
        serializer = ReassignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = allocator.reassign(id, serializer.validated_data['batch_id'])
        return Response(BatchAssignmentSerializer(asdict(assignment)).data, status=status.HTTP_200_OK)
