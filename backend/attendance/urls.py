from django.urls import path

from attendance.views import (
    CheckInDetailView,
    CheckInExportView,
    CheckInListCreateView,
    CheckInReviewView,
    MyCheckInsView,
)

urlpatterns = [
    path('check-ins/', CheckInListCreateView.as_view(), name='checkin-list'),
    path('check-ins/mine/', MyCheckInsView.as_view(), name='checkin-mine'),
    path('check-ins/export/', CheckInExportView.as_view(), name='checkin-export'),
    path('check-ins/<int:id>/', CheckInDetailView.as_view(), name='checkin-detail'),
    path('check-ins/<int:id>/review/', CheckInReviewView.as_view(), name='checkin-review'),
]
