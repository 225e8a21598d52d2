from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import CanReviewCheckIns, CanViewCheckIns
from accounts.utils import user_has_permission
from attendance import models as attendance_models
from attendance.serializers import (
    CheckInCreateSerializer,
    CheckInExportQuerySerializer,
    CheckInListQuerySerializer,
    CheckInReviewSerializer,
    CheckInSerializer,
)
from attendance.services import checkin as checkin_service
from attendance.services import export as export_service


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR') or None


class CheckInListCreateView(APIView):
    """POST: student GPS check-in for one of today's sessions.

    Staff holding `attendance.review_checkin` may submit on behalf of a
    student by passing `student_id`. GET lists a day's check-ins with a
    summary and needs `attendance.view_checkins`.
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated()]
        return [CanViewCheckIns()]

    def post(self, request, *args, **kwargs):
        serializer = CheckInCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        student_id = request.user.id
        if data.get('student_id') and data['student_id'] != request.user.id:
            if not user_has_permission(request.user, 'attendance.review_checkin'):
                return Response({'detail': 'Not authorized to check in for another student'}, status=status.HTTP_403_FORBIDDEN)
            student_id = data['student_id']

        check_in = checkin_service.submit_check_in(
            data['session_id'],
            student_id,
            data['lat'],
            data['lng'],
            device_info=data.get('device_info') or {},
            ip_address=_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )
        return Response(CheckInSerializer(check_in).data, status=status.HTTP_201_CREATED)

    def get(self, request, *args, **kwargs):
        query = CheckInListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        qs = checkin_service.list_check_ins(
            day=params.get('date'),
            location_id=params.get('location_id'),
            status=params.get('status'),
        )
        return Response({
            'date': (params.get('date') or timezone.localdate()).isoformat(),
            'summary': checkin_service.check_in_summary(qs),
            'results': CheckInSerializer(qs, many=True).data,
        })


class MyCheckInsView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        qs = checkin_service.student_check_ins(request.user.id)
        return Response(CheckInSerializer(qs, many=True).data)


class CheckInDetailView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, id: int, *args, **kwargs):
        check_in = get_object_or_404(
            attendance_models.CheckIn.objects.select_related('session__location', 'student', 'verified_by'), pk=id,
        )
        if check_in.student_id != request.user.id and not user_has_permission(request.user, 'attendance.view_checkins'):
            return Response({'detail': 'Not authorized to view this check-in'}, status=status.HTTP_403_FORBIDDEN)
        return Response(CheckInSerializer(check_in).data)


class CheckInReviewView(APIView):
    permission_classes = (CanReviewCheckIns,)

    def post(self, request, id: int, *args, **kwargs):
        serializer = CheckInReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        check_in = checkin_service.review_check_in(
            id,
            request.user.id,
            serializer.validated_data['decision'],
            notes=serializer.validated_data.get('notes'),
        )
        return Response(CheckInSerializer(check_in).data)


class CheckInExportView(APIView):
    permission_classes = (CanViewCheckIns,)

    def get(self, request, *args, **kwargs):
        query = CheckInExportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        day = params.get('date') or timezone.localdate()
        qs = checkin_service.list_check_ins(day=day, location_id=params.get('location_id'), status=params.get('status'))
        filename = f'attendance-{day.isoformat()}'

        if params['format'] == 'excel':
            response = HttpResponse(
                export_service.build_xlsx(qs, title=f'Check-ins {day.isoformat()}'),
                content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            )
            response['Content-Disposition'] = f'attachment; filename="{filename}.xlsx"'
            return response

        response = HttpResponse(export_service.build_csv(qs), content_type='text/csv')
        response['Content-Disposition'] = f'attachment; filename="{filename}.csv"'
        return response
