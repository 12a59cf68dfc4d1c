"""
Application workflow services.

Status changes are delegated to the transition methods on
:class:`housing.models.Application`; this module adds ownership checks,
row locking, audit rows and report invalidation around them.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import IntegrityError, transaction
from rest_framework.exceptions import PermissionDenied

from housing.exceptions import AlreadyAssigned, ConflictError, NotFoundError, StateError, ValidationError
from housing.models import Application, Occupant, User
from housing.permissions import is_owner_or_admin
from housing.services.audit import log_action
from housing.services.reports import invalidate_reports
from housing.services.rooms import paginate

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = 'You already have an application for this academic year and semester'

# Never writable through update_application.
PROTECTED_FIELDS = {'student', 'status', 'reviewed_by', 'reviewed_at', 'assigned_room'}
ADMIN_ONLY_FIELDS = {'payment_status', 'review_comments'}


def _queryset():
    return Application.objects.select_related(
        'student', 'hostel_preference', 'assigned_room', 'reviewed_by',
    )


def _get(app_id, *, lock: bool = False) -> Application:
    qs = Application.objects.select_for_update() if lock else _queryset()
    app = qs.filter(pk=app_id).first()
    if app is None:
        raise NotFoundError('Application not found')
    return app


def _check_owner(user: User, app: Application) -> None:
    if not is_owner_or_admin(user, app.student_id):
        raise PermissionDenied('Access denied')


@transaction.atomic
def submit_application(student: User, fields: dict[str, Any]) -> Application:
    if Application.objects.filter(
        student=student, academic_year=fields['academic_year'], semester=fields['semester'],
    ).exists():
        raise ConflictError(DUPLICATE_MESSAGE)
    if Occupant.objects.filter(student_id=student.pk).exists():
        raise AlreadyAssigned('You are already assigned to a room')

    data = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS | ADMIN_ONLY_FIELDS}
    try:
        with transaction.atomic():
            app = Application.objects.create(student=student, status=Application.STATUS_PENDING, **data)
    except IntegrityError:
        raise ConflictError(DUPLICATE_MESSAGE)

    log_action(user=student, action='application_submit', object_type='application', object_id=app.pk,
               detail={'academicYear': app.academic_year, 'semester': app.semester})
    transaction.on_commit(invalidate_reports)
    return _get(app.pk)


def list_applications(user: User, *, status: Optional[str] = None, academic_year: Optional[str] = None,
                      semester: Optional[str] = None, page: int = 1, limit: int = 20) -> dict:
    qs = _queryset().order_by('-created_at')
    if user.role == User.ROLE_STUDENT:
        qs = qs.filter(student=user)
    if status:
        qs = qs.filter(status=status)
    if academic_year:
        qs = qs.filter(academic_year=academic_year)
    if semester:
        qs = qs.filter(semester=semester)

    total = qs.count()
    offset = (page - 1) * limit
    return {
        'applications': [format_application(a) for a in qs[offset:offset + limit]],
        'pagination': paginate(page, limit, total),
    }


def applications_for_student(user: User, student_id) -> dict:
    if not is_owner_or_admin(user, student_id):
        raise PermissionDenied('Access denied')
    apps = [format_application(a) for a in _queryset().filter(student_id=student_id).order_by('-created_at')]
    return {'applications': apps, 'count': len(apps)}


def application_detail(user: User, app_id) -> Application:
    app = _get(app_id)
    _check_owner(user, app)
    return app


@transaction.atomic
def update_application(user: User, app_id, fields: dict[str, Any]) -> Application:
    app = _get(app_id, lock=True)
    _check_owner(user, app)
    if user.role == User.ROLE_STUDENT and app.status != Application.STATUS_PENDING:
        raise StateError('Only pending applications can be updated')

    blocked = PROTECTED_FIELDS if user.role == User.ROLE_ADMIN else PROTECTED_FIELDS | ADMIN_ONLY_FIELDS
    changes = {k: v for k, v in fields.items() if k not in blocked}

    year = changes.get('academic_year', app.academic_year)
    semester = changes.get('semester', app.semester)
    if (year, semester) != (app.academic_year, app.semester) and Application.objects.filter(
        student_id=app.student_id, academic_year=year, semester=semester,
    ).exclude(pk=app.pk).exists():
        raise ConflictError(DUPLICATE_MESSAGE)

    for key, value in changes.items():
        setattr(app, key, value)
    app.save()
    transaction.on_commit(invalidate_reports)
    return _get(app.pk)


@transaction.atomic
def delete_application(user: User, app_id) -> None:
    app = _get(app_id, lock=True)
    _check_owner(user, app)
    if user.role == User.ROLE_STUDENT and app.status != Application.STATUS_PENDING:
        raise StateError('Only pending applications can be deleted')
    log_action(user=user, action='application_delete', object_type='application', object_id=app.pk,
               detail={'status': app.status})
    app.delete()
    transaction.on_commit(invalidate_reports)


@transaction.atomic
def approve_application(reviewer: User, app_id, comments: str = '') -> Application:
    app = _get(app_id, lock=True)
    app.approve(reviewer, comments)
    log_action(user=reviewer, action='application_approve', object_type='application', object_id=app.pk)
    transaction.on_commit(invalidate_reports)
    logger.info('application %s approved by %s', app.pk, reviewer.pk)
    return _get(app.pk)


@transaction.atomic
def reject_application(reviewer: User, app_id, comments: str) -> Application:
    if not (comments or '').strip():
        raise ValidationError(['Rejection reason is required'])
    app = _get(app_id, lock=True)
    app.reject(reviewer, comments)
    log_action(user=reviewer, action='application_reject', object_type='application', object_id=app.pk,
               detail={'comments': app.review_comments})
    transaction.on_commit(invalidate_reports)
    logger.info('application %s rejected by %s', app.pk, reviewer.pk)
    return _get(app.pk)


def format_application(app: Application) -> dict:
    student = app.student
    room = app.assigned_room
    hostel = app.hostel_preference
    return {
        'id': app.pk,
        'student': {
            'id': student.pk,
            'name': student.name,
            'email': student.email,
            'matricNumber': student.matric_number,
            'gender': student.gender,
            'level': student.level,
            'department': student.department,
            'phoneNumber': student.phone_number,
        },
        'academicYear': app.academic_year,
        'semester': app.semester,
        'personalInfo': {
            'guardianName': app.guardian_name,
            'guardianPhone': app.guardian_phone,
            'guardianEmail': app.guardian_email,
            'homeAddress': app.home_address,
            'stateOfOrigin': app.state_of_origin,
            'emergencyContact': {
                'name': app.emergency_name,
                'phone': app.emergency_phone,
                'relationship': app.emergency_relationship,
            },
        },
        'preferences': {
            'hostelPreference': {'id': hostel.pk, 'name': hostel.name, 'gender': hostel.gender} if hostel else None,
            'roomTypePreference': app.room_type_preference,
            'specialRequests': app.special_requests,
        },
        'status': app.status,
        'assignedRoom': {
            'id': room.pk,
            'number': room.number,
            'hostelName': room.hostel_name,
            'type': room.type,
            'capacity': room.capacity,
            'isEnsuite': room.is_ensuite,
        } if room else None,
        'reviewedBy': {'id': app.reviewed_by.pk, 'name': app.reviewed_by.name, 'email': app.reviewed_by.email}
        if app.reviewed_by else None,
        'reviewedAt': app.reviewed_at.isoformat() if app.reviewed_at else None,
        'reviewComments': app.review_comments,
        'paymentStatus': app.payment_status,
        'documents': app.documents,
        'applicationAge': app.application_age,
        'createdAt': app.created_at.isoformat(),
        'updatedAt': app.updated_at.isoformat(),
    }
