"""
Room endpoints.

Reads are open to any authenticated user; creating, editing and deleting
rooms, and moving students in and out of them, is reserved for admins.
Bed assignment and release are delegated to the allocation service,
which runs them inside one transaction.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..permissions import IsAdminOrReadOnly, IsAdminRole
from ..responses import created, ok
from ..serializers.rooms import (
    AssignSerializer,
    AvailableRoomsQuerySerializer,
    RemoveStudentSerializer,
    RoomListQuerySerializer,
    RoomSerializer,
    RoomUpdateSerializer,
)
from ..services import allocation
from ..services import rooms as room_service
from ..services.applications import format_application
from ..services.users import format_user


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def rooms_list(request):
    if request.method == 'GET':
        q = RoomListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(room_service.list_rooms(**q.validated_data))

    s = RoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = room_service.create_room(s.model_fields())
    return created({'room': room_service.format_room(room_service.get_room(room.pk))},
                   'Room created successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def rooms_available(request):
    """Free rooms of one gender, also grouped by hostel name."""
    q = AvailableRoomsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return ok(room_service.available_rooms(**q.validated_data))


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def room_detail(request, pk: int):
    if request.method == 'GET':
        return ok({'room': room_service.format_room(room_service.get_room(pk))})
    if request.method == 'DELETE':
        room_service.delete_room(pk)
        return ok(message='Room deleted successfully')

    s = RoomUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = room_service.update_room(pk, s.model_fields())
    return ok({'room': room_service.format_room(room)}, 'Room updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_assign(request):
    s = AssignSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    room, student, application = allocation.assign_room(
        request.user,
        student_id=vd['studentId'],
        room_id=vd['roomId'],
        application_id=vd.get('applicationId'),
    )
    data = {
        'room': room_service.format_room(room_service.get_room(room.pk)),
        'student': format_user(student),
    }
    if application is not None:
        data['application'] = format_application(application)
    return ok(data, 'Student assigned to room successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_remove_student(request, pk: int):
    s = RemoveStudentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = allocation.remove_student(request.user, room_id=pk, student_id=s.validated_data['studentId'])
    return ok({'room': room_service.format_room(room_service.get_room(room.pk))},
              'Student removed from room successfully')
