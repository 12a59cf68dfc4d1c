"""
Room allocation ledger.

Every change to a room's occupant list goes through ``assign_student`` or
``release_student``.  Both expect to run inside ``transaction.atomic()``
and take a row lock on the room first, so two requests racing for the
last bed are serialized on that row.  The capacity precondition is
re-checked by the UPDATE itself, which only matches while a bed is free.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Prefetch
from django.utils import timezone

from housing.exceptions import (
    AlreadyAssigned,
    CapacityExceeded,
    ConflictError,
    GenderMismatch,
    NotAnOccupant,
    NotFoundError,
    StateError,
    ValidationError,
)
from housing.models import Hostel, Occupant, Room, User
from housing.services.reports import invalidate_reports

logger = logging.getLogger(__name__)

# Fields a room update may touch. Occupancy is owned by the ledger.
UPDATABLE_FIELDS = ('number', 'capacity', 'type', 'is_ensuite', 'gender', 'price', 'amenities', 'condition', 'is_active')


def lock_room(room_id) -> Room:
    room = Room.objects.select_for_update().filter(pk=room_id).first()
    if room is None:
        raise NotFoundError('Room not found')
    return room


def assign_student(room: Room, student: User) -> Occupant:
    """Give ``student`` the next free bed in ``room``.

    ``room`` must have been fetched with :func:`lock_room` in the current
    transaction.
    """
    if not room.is_available():
        raise CapacityExceeded()
    if student.gender != room.gender:
        raise GenderMismatch()
    if Occupant.objects.filter(student_id=student.pk).exists():
        raise AlreadyAssigned()

    updated = (
        Room.objects
        .filter(pk=room.pk, is_active=True, occupied_beds__lt=F('capacity'))
        .update(occupied_beds=F('occupied_beds') + 1, updated_at=timezone.now())
    )
    if not updated:
        raise CapacityExceeded()

    try:
        with transaction.atomic():
            occupant = Occupant.objects.create(
                room=room, student=student, bed_number=room.occupied_beds + 1,
            )
    except IntegrityError:
        raise AlreadyAssigned()

    room.refresh_from_db(fields=['occupied_beds', 'updated_at'])
    logger.info('room %s: student %s took bed %s', room.pk, student.pk, occupant.bed_number)
    return occupant


def release_student(room: Room, student_id) -> None:
    """Take ``student_id`` out of ``room`` and renumber the remaining beds 1..n."""
    occupant = Occupant.objects.filter(room=room, student_id=student_id).first()
    if occupant is None:
        raise NotAnOccupant()
    occupant.delete()

    remaining = list(Occupant.objects.filter(room=room).order_by('bed_number'))
    # Shift out of the way first so the (room, bed_number) constraint holds mid-update.
    offset = len(remaining) + room.capacity + 1
    for occ in remaining:
        Occupant.objects.filter(pk=occ.pk).update(bed_number=occ.bed_number + offset)
    for index, occ in enumerate(remaining, start=1):
        Occupant.objects.filter(pk=occ.pk).update(bed_number=index)

    Room.objects.filter(pk=room.pk).update(occupied_beds=len(remaining), updated_at=timezone.now())
    room.refresh_from_db(fields=['occupied_beds', 'updated_at'])
    logger.info('room %s: student %s released, %s bed(s) still taken', room.pk, student_id, room.occupied_beds)


# ---------------------------------------------------------------------
# CRUD around the ledger
# ---------------------------------------------------------------------
def room_queryset():
    occupants = Occupant.objects.select_related('student').order_by('bed_number')
    return Room.objects.select_related('hostel').prefetch_related(Prefetch('occupants', queryset=occupants))


def get_room(room_id) -> Room:
    room = room_queryset().filter(pk=room_id).first()
    if room is None:
        raise NotFoundError('Room not found')
    return room


@transaction.atomic
def create_room(data: dict[str, Any]) -> Room:
    hostel = Hostel.objects.filter(pk=data.get('hostel')).first()
    if hostel is None:
        raise NotFoundError('Hostel not found')
    if data['gender'] != hostel.gender:
        raise ValidationError(['Room gender must match hostel gender'])
    if Room.objects.filter(hostel=hostel, number=data['number']).exists():
        raise ConflictError('Room number already exists in this hostel')

    fields = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}
    room = Room.objects.create(hostel=hostel, hostel_name=hostel.name, occupied_beds=0, **fields)
    logger.info('room %s created in hostel %s', room.pk, hostel.pk)
    transaction.on_commit(invalidate_reports)
    return room


@transaction.atomic
def update_room(room_id, data: dict[str, Any]) -> Room:
    room = lock_room(room_id)
    changes = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}

    capacity = changes.get('capacity', room.capacity)
    if capacity < room.occupied_beds:
        raise StateError('Capacity cannot be lower than the number of occupied beds')
    if 'gender' in changes and changes['gender'] != room.gender and room.occupied_beds > 0:
        raise StateError('Cannot change the gender of an occupied room')
    number = changes.get('number', room.number)
    if number != room.number and Room.objects.filter(hostel_id=room.hostel_id, number=number).exists():
        raise ConflictError('Room number already exists in this hostel')

    for key, value in changes.items():
        setattr(room, key, value)
    room.save()
    transaction.on_commit(invalidate_reports)
    return get_room(room.pk)


@transaction.atomic
def delete_room(room_id) -> None:
    room = lock_room(room_id)
    if room.occupied_beds > 0:
        raise StateError('Cannot delete room with occupants')
    room.delete()
    logger.info('room %s deleted', room_id)
    transaction.on_commit(invalidate_reports)


def list_rooms(*, hostel=None, gender=None, type=None, available=None, page: int = 1, limit: int = 20) -> dict:
    qs = room_queryset()
    if hostel:
        qs = qs.filter(hostel_id=hostel)
    if gender:
        qs = qs.filter(gender=gender)
    if type:
        qs = qs.filter(type=type)
    if available is True:
        qs = qs.filter(is_active=True, occupied_beds__lt=F('capacity'))
    elif available is False:
        qs = qs.exclude(is_active=True, occupied_beds__lt=F('capacity'))
    qs = qs.order_by('hostel_name', 'number')

    total = qs.count()
    offset = (page - 1) * limit
    rooms = list(qs[offset:offset + limit])
    return {
        'rooms': [format_room(r) for r in rooms],
        'pagination': paginate(page, limit, total),
    }


def available_rooms(*, gender: str, type: Optional[str] = None, hostel=None) -> dict:
    qs = Room.objects.select_related('hostel').filter(
        gender=gender, is_active=True, occupied_beds__lt=F('capacity'),
    )
    if type:
        qs = qs.filter(type=type)
    if hostel:
        qs = qs.filter(hostel_id=hostel)
    rooms = list(qs.order_by('hostel_name', 'type', 'number'))

    by_hostel: dict[str, dict] = {}
    for room in rooms:
        group = by_hostel.setdefault(room.hostel_name, {
            'hostel': {
                'id': room.hostel_id,
                'name': room.hostel.name,
                'gender': room.hostel.gender,
                'facilities': room.hostel.facilities,
            },
            'rooms': [],
        })
        group['rooms'].append(format_room(room, with_occupants=False))
    return {
        'availableRooms': [format_room(r, with_occupants=False) for r in rooms],
        'roomsByHostel': by_hostel,
        'count': len(rooms),
    }


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------
def paginate(page: int, limit: int, total: int) -> dict:
    return {
        'current': page,
        'pages': math.ceil(total / limit) if limit else 0,
        'total': total,
        'limit': limit,
    }


def format_student(user: User) -> dict:
    return {
        'id': user.pk,
        'name': user.name,
        'email': user.email,
        'matricNumber': user.matric_number,
        'phoneNumber': user.phone_number,
        'level': user.level,
        'department': user.department,
    }


def format_occupant(occ: Occupant) -> dict:
    return {
        'student': format_student(occ.student),
        'bedNumber': occ.bed_number,
        'assignedDate': occ.assigned_date.isoformat(),
    }


def format_room(room: Room, *, with_occupants: bool = True) -> dict:
    data = {
        'id': room.pk,
        'number': room.number,
        'hostel': {'id': room.hostel_id, 'name': room.hostel.name, 'gender': room.hostel.gender},
        'hostelName': room.hostel_name,
        'capacity': room.capacity,
        'type': room.type,
        'isEnsuite': room.is_ensuite,
        'gender': room.gender,
        'occupiedBeds': room.occupied_beds,
        'availableBeds': room.available_beds,
        'occupancyRate': round(room.occupancy_rate, 2),
        'price': float(room.price),
        'amenities': room.amenities,
        'condition': room.condition,
        'isActive': room.is_active,
        'createdAt': room.created_at.isoformat() if room.created_at else None,
        'updatedAt': room.updated_at.isoformat() if room.updated_at else None,
    }
    if with_occupants:
        data['occupants'] = [format_occupant(o) for o in room.occupants.all()]
    return data
