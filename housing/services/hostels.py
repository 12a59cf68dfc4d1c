from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import transaction
from django.db.models import Count, F, Q, Sum

from housing.exceptions import ConflictError, NotFoundError, StateError
from housing.models import Hostel, Room
from housing.services.reports import invalidate_reports
from housing.services.rooms import room_queryset, format_room

logger = logging.getLogger(__name__)


def _stats(rooms_qs) -> dict:
    agg = rooms_qs.aggregate(
        bed_total=Sum('capacity'),
        beds_taken=Sum('occupied_beds'),
        room_total=Count('id'),
        rooms_free=Count('id', filter=Q(is_active=True, occupied_beds__lt=F('capacity'))),
    )
    total = agg['bed_total'] or 0
    occupied = agg['beds_taken'] or 0
    return {
        'totalBeds': total,
        'occupiedBeds': occupied,
        'availableBeds': total - occupied,
        'occupancyRate': round(occupied / total * 100, 2) if total else 0.0,
        'totalRooms': agg['room_total'],
        'availableRooms': agg['rooms_free'],
    }


def get_hostel(hostel_id) -> Hostel:
    hostel = Hostel.objects.filter(pk=hostel_id).first()
    if hostel is None:
        raise NotFoundError('Hostel not found')
    return hostel


def list_hostels(*, gender: Optional[str] = None, active: Optional[bool] = None) -> dict:
    qs = Hostel.objects.all().order_by('name')
    if gender:
        qs = qs.filter(gender=gender)
    if active is not None:
        qs = qs.filter(is_active=active)
    hostels = [
        {**format_hostel(h), 'stats': _stats(Room.objects.filter(hostel=h))}
        for h in qs
    ]
    return {'hostels': hostels, 'count': len(hostels)}


def hostel_detail(hostel_id) -> dict:
    hostel = get_hostel(hostel_id)
    rooms = room_queryset().filter(hostel=hostel).order_by('number')
    return {
        'hostel': format_hostel(hostel),
        'rooms': [format_room(r) for r in rooms],
        'stats': _stats(Room.objects.filter(hostel=hostel)),
    }


@transaction.atomic
def create_hostel(data: dict[str, Any]) -> Hostel:
    if Hostel.objects.filter(name__iexact=data['name']).exists():
        raise ConflictError('Hostel with this name already exists')
    hostel = Hostel.objects.create(**data)
    logger.info('hostel %s created', hostel.pk)
    transaction.on_commit(invalidate_reports)
    return hostel


@transaction.atomic
def update_hostel(hostel_id, data: dict[str, Any]) -> Hostel:
    hostel = Hostel.objects.select_for_update().filter(pk=hostel_id).first()
    if hostel is None:
        raise NotFoundError('Hostel not found')
    name = data.get('name', hostel.name)
    if name != hostel.name and Hostel.objects.filter(name__iexact=name).exclude(pk=hostel.pk).exists():
        raise ConflictError('Hostel with this name already exists')
    if data.get('gender', hostel.gender) != hostel.gender and hostel.rooms.exists():
        raise StateError('Cannot change the gender of a hostel that has rooms')

    renamed = name != hostel.name
    for key, value in data.items():
        setattr(hostel, key, value)
    hostel.save()
    if renamed:
        Room.objects.filter(hostel=hostel).update(hostel_name=name)
    transaction.on_commit(invalidate_reports)
    return hostel


@transaction.atomic
def delete_hostel(hostel_id) -> None:
    hostel = Hostel.objects.select_for_update().filter(pk=hostel_id).first()
    if hostel is None:
        raise NotFoundError('Hostel not found')
    rooms = list(Room.objects.select_for_update().filter(hostel=hostel))
    if any(room.occupied_beds > 0 for room in rooms):
        raise StateError('Cannot delete hostel with occupied rooms')
    Room.objects.filter(hostel=hostel).delete()
    hostel.delete()
    logger.info('hostel %s deleted', hostel_id)
    transaction.on_commit(invalidate_reports)


def format_hostel(hostel: Hostel) -> dict:
    return {
        'id': hostel.pk,
        'name': hostel.name,
        'gender': hostel.gender,
        'description': hostel.description,
        'roomTypes': hostel.room_types,
        'totalRooms': hostel.total_rooms,
        'facilities': hostel.facilities,
        'rules': hostel.rules,
        'warden': hostel.warden,
        'isActive': hostel.is_active,
        'createdAt': hostel.created_at.isoformat() if hostel.created_at else None,
        'updatedAt': hostel.updated_at.isoformat() if hostel.updated_at else None,
    }
