"""
URL mappings for the hostel allocation API.

Every endpoint lives under ``/api``.  Trailing slashes are deliberately
omitted to match the front-end client.
"""
from django.urls import include, path

from .auth_views import (
    change_password_view,
    jwt_logout_view,
    jwt_refresh_view,
    login_view,
    profile_view,
    register_view,
)
from .views import admin, applications, health, hostels, rooms


urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('api/health', health.healthz),

    # Authentication
    path('api/auth/register', register_view),
    path('api/auth/login', login_view),
    path('api/auth/profile', profile_view),
    path('api/auth/change-password', change_password_view),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', jwt_logout_view),

    # Hostels
    path('api/hostels', hostels.hostels_list),
    path('api/hostels/<int:pk>', hostels.hostel_detail),

    # Rooms
    path('api/rooms', rooms.rooms_list),
    path('api/rooms/available', rooms.rooms_available),
    path('api/rooms/assign', rooms.room_assign),
    path('api/rooms/<int:pk>', rooms.room_detail),
    path('api/rooms/<int:pk>/remove-student', rooms.room_remove_student),

    # Applications
    path('api/applications/submit', applications.application_submit),
    path('api/applications', applications.applications_list),
    path('api/applications/student/<int:student_id>', applications.applications_for_student),
    path('api/applications/<int:pk>', applications.application_detail),
    path('api/applications/<int:pk>/approve', applications.application_approve),
    path('api/applications/<int:pk>/reject', applications.application_reject),

    # Administration
    path('api/admin/dashboard', admin.admin_dashboard),
    path('api/admin/users', admin.admin_users),
    path('api/admin/users/<int:pk>/toggle-status', admin.admin_toggle_user_status),
    path('api/admin/reports/occupancy', admin.occupancy_report),
    path('api/admin/reports/applications', admin.applications_report),
]
