"""
Administrative endpoints: dashboard, user management and reports.

All handlers here are read-only except the user status toggle.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..permissions import IsAdminRole
from ..responses import ok
from ..serializers.applications import ApplicationsReportQuerySerializer
from ..serializers.auth import UserListQuerySerializer
from ..serializers.rooms import OccupancyReportQuerySerializer
from ..services import reports
from ..services import users as user_service


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    """Return dashboard statistics for the current (or requested) academic year."""
    return ok(reports.dashboard(request.query_params.get('academicYear') or None))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_users(request):
    q = UserListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = dict(q.validated_data)
    vd['has_room'] = vd.pop('hasRoom', None)
    return ok(user_service.list_users(**vd))


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_toggle_user_status(request, pk: int):
    user = user_service.toggle_user_status(request.user, pk)
    state = 'activated' if user.is_active else 'deactivated'
    return ok({'user': user_service.format_user(user)}, f'User {state} successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def occupancy_report(request):
    q = OccupancyReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return ok(reports.occupancy_report(**q.validated_data))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def applications_report(request):
    q = ApplicationsReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    return ok(reports.applications_report(
        academic_year=vd.get('academicYear'),
        semester=vd.get('semester'),
        status=vd.get('status'),
        start_date=vd.get('startDate'),
        end_date=vd.get('endDate'),
    ))
