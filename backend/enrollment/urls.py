from django.urls import path

from enrollment.views import (
    BatchDetailView,
    BatchListView,
    BatchPreviewView,
    BatchStudentsView,
    RegistrationReassignView,
)

urlpatterns = [
    path('batch-preview/', BatchPreviewView.as_view(), name='batch-preview'),
    path('batches/', BatchListView.as_view(), name='batch-list'),
    path('batches/<int:id>/', BatchDetailView.as_view(), name='batch-detail'),
    path('batches/<int:id>/students/', BatchStudentsView.as_view(), name='batch-students'),
    path('registrations/<int:id>/reassign/', RegistrationReassignView.as_view(), name='registration-reassign'),
]
