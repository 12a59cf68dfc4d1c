"""
Application endpoints.

Students submit and manage their own applications while they are still
pending; admins review them.  The review transitions themselves live on
the model, so these handlers only parse input and shape the envelope.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..permissions import IsAdminRole, IsStudentRole
from ..responses import created, ok
from ..serializers.applications import ApplicationListQuerySerializer, ApplicationSerializer, ReviewSerializer
from ..services import applications as app_service


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudentRole])
def application_submit(request):
    s = ApplicationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = app_service.submit_application(request.user, s.model_fields())
    return created({'application': app_service.format_application(app)}, 'Application submitted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def applications_list(request):
    q = ApplicationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    return ok(app_service.list_applications(
        request.user,
        status=vd.get('status'),
        academic_year=vd.get('academicYear'),
        semester=vd.get('semester'),
        page=vd['page'],
        limit=vd['limit'],
    ))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def applications_for_student(request, student_id: int):
    return ok(app_service.applications_for_student(request.user, student_id))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def application_detail(request, pk: int):
    if request.method == 'GET':
        app = app_service.application_detail(request.user, pk)
        return ok({'application': app_service.format_application(app)})
    if request.method == 'DELETE':
        app_service.delete_application(request.user, pk)
        return ok(message='Application deleted successfully')

    s = ApplicationSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    app = app_service.update_application(request.user, pk, s.model_fields())
    return ok({'application': app_service.format_application(app)}, 'Application updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def application_approve(request, pk: int):
    s = ReviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = app_service.approve_application(request.user, pk, s.validated_data['comments'])
    return ok({'application': app_service.format_application(app)}, 'Application approved successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def application_reject(request, pk: int):
    s = ReviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    app = app_service.reject_application(request.user, pk, s.validated_data['comments'])
    return ok({'application': app_service.format_application(app)}, 'Application rejected successfully')
