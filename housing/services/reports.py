"""
Read-only aggregation over rooms, applications and users.

Nothing here writes an entity.  The dashboard payload is cached; cached
entries are keyed by a generation counter that every ledger or workflow
mutation bumps through :func:`invalidate_reports`.
"""
from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Case, Count, IntegerField, Q, Sum, When
from django.db.models.functions import TruncMonth
from django.utils import timezone

from housing.models import Application, Hostel, Occupant, Room, User

logger = logging.getLogger(__name__)

GENERATION_KEY = 'reports:gen'


def current_academic_year() -> str:
    year = timezone.localdate().year
    return f'{year}/{year + 1}'


def _rate(part, whole) -> float:
    return round((part / whole) * 100, 2) if whole else 0.0


def _generation() -> int:
    gen = cache.get(GENERATION_KEY)
    if gen is None:
        cache.add(GENERATION_KEY, time.time_ns(), timeout=None)
        gen = cache.get(GENERATION_KEY)
    return gen


def invalidate_reports() -> None:
    try:
        cache.incr(GENERATION_KEY)
    except ValueError:
        cache.set(GENERATION_KEY, time.time_ns(), timeout=None)
    logger.debug('report cache invalidated')


def _occupied_rooms_expr():
    return Sum(Case(When(occupied_beds__gt=0, then=1), default=0, output_field=IntegerField()))


# ---------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------
def dashboard(academic_year: Optional[str] = None) -> dict:
    academic_year = academic_year or current_academic_year()
    ttl = getattr(settings, 'REPORT_CACHE_TTL', 0)
    if ttl <= 0:
        return build_dashboard(academic_year)

    key = f'reports:{_generation()}:dashboard:{academic_year}'
    data = cache.get(key)
    if data is None:
        data = build_dashboard(academic_year)
        cache.set(key, data, ttl)
    return data


def build_dashboard(academic_year: str) -> dict:
    now = timezone.now()

    apps = Application.objects.filter(academic_year=academic_year)
    status_counts = dict(apps.values('status').annotate(n=Count('id')).values_list('status', 'n'))
    recent = Application.objects.filter(created_at__gte=now - timedelta(days=30)).count()
    monthly = (
        Application.objects.filter(created_at__gte=now - timedelta(days=183))
        .annotate(month=TruncMonth('created_at'))
        .values('month')
        .annotate(count=Count('id'))
        .order_by('month')
    )

    total_students = User.objects.filter(role=User.ROLE_STUDENT, is_active=True).count()
    total_admins = User.objects.filter(role=User.ROLE_ADMIN, is_active=True).count()
    students_with_rooms = Occupant.objects.filter(student__role=User.ROLE_STUDENT).count()

    active_hostels = Hostel.objects.filter(is_active=True)
    hostel_counts = active_hostels.aggregate(
        total=Count('id'),
        male=Count('id', filter=Q(gender='male')),
        female=Count('id', filter=Q(gender='female')),
    )

    active_rooms = Room.objects.filter(is_active=True)
    totals = active_rooms.aggregate(
        rooms=Count('id'),
        occupied_rooms=_occupied_rooms_expr(),
        beds=Sum('capacity'),
        beds_taken=Sum('occupied_beds'),
    )
    total_rooms = totals['rooms'] or 0
    occupied_rooms = totals['occupied_rooms'] or 0
    total_beds = totals['beds'] or 0
    occupied_beds = totals['beds_taken'] or 0

    per_hostel = []
    for row in (
        active_rooms.values('hostel_name')
        .annotate(
            totalBeds=Sum('capacity'),
            occupiedBeds=Sum('occupied_beds'),
            totalRooms=Count('id'),
            occupiedRooms=_occupied_rooms_expr(),
        )
    ):
        per_hostel.append({
            'hostelName': row['hostel_name'],
            'totalBeds': row['totalBeds'],
            'occupiedBeds': row['occupiedBeds'],
            'availableBeds': row['totalBeds'] - row['occupiedBeds'],
            'totalRooms': row['totalRooms'],
            'occupiedRooms': row['occupiedRooms'],
            'occupancyRate': _rate(row['occupiedBeds'], row['totalBeds']),
        })
    per_hostel.sort(key=lambda h: h['occupancyRate'], reverse=True)

    return {
        'applications': {
            'total': sum(status_counts.values()),
            'pending': status_counts.get(Application.STATUS_PENDING, 0),
            'approved': status_counts.get(Application.STATUS_APPROVED, 0),
            'rejected': status_counts.get(Application.STATUS_REJECTED, 0),
            'assigned': status_counts.get(Application.STATUS_ASSIGNED, 0),
            'recent': recent,
            'byStatus': [{'status': k, 'count': v} for k, v in sorted(status_counts.items())],
            'monthlyTrends': [
                {'year': m['month'].year, 'month': m['month'].month, 'count': m['count']}
                for m in monthly if m['month']
            ],
        },
        'users': {
            'totalStudents': total_students,
            'totalAdmins': total_admins,
            'studentsWithRooms': students_with_rooms,
            'studentsWithoutRooms': max(total_students - students_with_rooms, 0),
        },
        'hostels': {
            'total': hostel_counts['total'],
            'male': hostel_counts['male'],
            'female': hostel_counts['female'],
            'occupancy': per_hostel,
        },
        'rooms': {
            'total': total_rooms,
            'occupied': occupied_rooms,
            'available': total_rooms - occupied_rooms,
            'occupancyRate': _rate(occupied_rooms, total_rooms),
        },
        'beds': {
            'total': total_beds,
            'occupied': occupied_beds,
            'available': total_beds - occupied_beds,
            'occupancyRate': _rate(occupied_beds, total_beds),
        },
        'academicYear': academic_year,
    }


# ---------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------
def occupancy_report(*, hostel=None, gender: Optional[str] = None) -> dict:
    rooms = Room.objects.filter(is_active=True).order_by('hostel_name', 'number')
    if hostel:
        rooms = rooms.filter(hostel_id=hostel)
    if gender:
        rooms = rooms.filter(gender=gender)

    groups: dict[int, dict] = {}
    for room in rooms:
        group = groups.setdefault(room.hostel_id, {
            'hostelId': room.hostel_id,
            'hostelName': room.hostel_name,
            'gender': room.gender,
            'totalRooms': 0,
            'totalBeds': 0,
            'occupiedBeds': 0,
            'occupiedRooms': 0,
            'rooms': [],
        })
        group['totalRooms'] += 1
        group['totalBeds'] += room.capacity
        group['occupiedBeds'] += room.occupied_beds
        group['occupiedRooms'] += 1 if room.occupied_beds > 0 else 0
        group['rooms'].append({
            'id': room.pk,
            'number': room.number,
            'type': room.type,
            'capacity': room.capacity,
            'occupiedBeds': room.occupied_beds,
            'isEnsuite': room.is_ensuite,
            'occupancyRate': _rate(room.occupied_beds, room.capacity),
        })

    hostels = sorted(groups.values(), key=lambda g: g['hostelName'])
    overall = {'totalRooms': 0, 'totalBeds': 0, 'occupiedBeds': 0, 'occupiedRooms': 0}
    for group in hostels:
        group['availableBeds'] = group['totalBeds'] - group['occupiedBeds']
        group['availableRooms'] = group['totalRooms'] - group['occupiedRooms']
        group['occupancyRate'] = _rate(group['occupiedBeds'], group['totalBeds'])
        for k in overall:
            overall[k] += group[k]
    overall['availableBeds'] = overall['totalBeds'] - overall['occupiedBeds']
    overall['availableRooms'] = overall['totalRooms'] - overall['occupiedRooms']
    overall['occupancyRate'] = _rate(overall['occupiedBeds'], overall['totalBeds'])

    return {
        'hostels': hostels,
        'overall': overall,
        'generatedAt': timezone.now().isoformat(),
    }


def applications_report(*, academic_year=None, semester=None, status=None, start_date=None, end_date=None) -> dict:
    qs = Application.objects.select_related('student', 'hostel_preference').order_by('status', 'created_at')
    if academic_year:
        qs = qs.filter(academic_year=academic_year)
    if semester:
        qs = qs.filter(semester=semester)
    if status:
        qs = qs.filter(status=status)
    if start_date:
        qs = qs.filter(created_at__date__gte=start_date)
    if end_date:
        qs = qs.filter(created_at__date__lte=end_date)

    groups: dict[str, dict] = {}
    for app in qs:
        group = groups.setdefault(app.status, {'status': app.status, 'count': 0, 'applications': []})
        group['count'] += 1
        group['applications'].append({
            'id': app.pk,
            'student': {
                'name': app.student.name,
                'matricNumber': app.student.matric_number,
                'email': app.student.email,
                'gender': app.student.gender,
                'level': app.student.level,
                'department': app.student.department,
            },
            'academicYear': app.academic_year,
            'semester': app.semester,
            'preferredHostel': app.hostel_preference.name if app.hostel_preference else None,
            'roomTypePreference': app.room_type_preference,
            'createdAt': app.created_at.isoformat(),
            'reviewedAt': app.reviewed_at.isoformat() if app.reviewed_at else None,
            'applicationAge': app.application_age,
        })

    by_status = sorted(groups.values(), key=lambda g: g['status'])
    return {
        'summary': {
            'total': sum(g['count'] for g in by_status),
            'byStatus': {g['status']: g['count'] for g in by_status},
        },
        'byStatus': by_status,
        'filters': {
            'academicYear': academic_year,
            'semester': semester,
            'status': status,
            'startDate': start_date.isoformat() if start_date else None,
            'endDate': end_date.isoformat() if end_date else None,
        },
        'generatedAt': timezone.now().isoformat(),
    }
