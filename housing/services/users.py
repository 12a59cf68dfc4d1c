from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import IntegrityError, transaction
from django.db.models import Exists, OuterRef, Q
from rest_framework.exceptions import AuthenticationFailed

from housing.exceptions import ConflictError, NotFoundError, ValidationError
from housing.models import Occupant, User
from housing.services.audit import log_action
from housing.services.reports import invalidate_reports
from housing.services.rooms import paginate

logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(fields: dict[str, Any]) -> User:
    fields = dict(fields)
    email = fields.pop('email')
    matric = fields.get('matric_number')
    clash = Q(email__iexact=email)
    if matric:
        clash |= Q(matric_number=matric)
    if User.objects.filter(clash).exists():
        raise ConflictError('User with this email or matric number already exists')

    password = fields.pop('password')
    try:
        with transaction.atomic():
            user = User.objects.create_user(username=email, email=email, password=password, **fields)
    except IntegrityError:
        raise ConflictError('User with this email or matric number already exists')
    log_action(user=user, action='register', object_type='user', object_id=user.pk, detail={'role': user.role})
    transaction.on_commit(invalidate_reports)
    return user


def authenticate_user(*, email: Optional[str], matric_number: Optional[str], password: str) -> User:
    """Resolve credentials by email first, then matric number."""
    if email:
        user = User.objects.filter(email__iexact=email.strip()).first()
    else:
        user = User.objects.filter(matric_number=(matric_number or '').strip().upper()).first()
    if user is None or not user.is_active or not user.check_password(password):
        raise AuthenticationFailed('Invalid credentials', code='invalid_credentials')
    return user


def update_profile(user: User, fields: dict[str, Any]) -> User:
    for key, value in fields.items():
        setattr(user, key, value)
    if fields:
        user.save(update_fields=[*fields.keys(), 'updated_at'])
    return user


def change_password(user: User, current: str, new: str) -> None:
    if not user.check_password(current):
        raise ValidationError(['Current password is incorrect'])
    user.set_password(new)
    user.save(update_fields=['password', 'updated_at'])
    log_action(user=user, action='change_password', object_type='user', object_id=user.pk)


def list_users(*, role=None, gender=None, level=None, department=None, has_room: Optional[bool] = None,
               search=None, page: int = 1, limit: int = 20) -> dict:
    qs = User.objects.annotate(
        has_room=Exists(Occupant.objects.filter(student_id=OuterRef('pk'))),
    ).order_by('-created_at')
    if role:
        qs = qs.filter(role=role)
    if gender:
        qs = qs.filter(gender=gender)
    if level:
        qs = qs.filter(level=level)
    if department:
        qs = qs.filter(department__icontains=department)
    if has_room is not None:
        qs = qs.filter(has_room=has_room)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(email__icontains=search) | Q(matric_number__icontains=search))

    total = qs.count()
    offset = (page - 1) * limit
    return {
        'users': [format_user(u) for u in qs[offset:offset + limit]],
        'pagination': paginate(page, limit, total),
    }


@transaction.atomic
def toggle_user_status(actor: User, user_id) -> User:
    user = User.objects.select_for_update().filter(pk=user_id).first()
    if user is None:
        raise NotFoundError('User not found')
    user.is_active = not user.is_active
    user.save(update_fields=['is_active', 'updated_at'])
    log_action(user=actor, action='user_toggle_status', object_type='user', object_id=user.pk,
               detail={'isActive': user.is_active})
    transaction.on_commit(invalidate_reports)
    logger.info('user %s %s by %s', user.pk, 'activated' if user.is_active else 'deactivated', actor.pk)
    return user


def format_user(user: User) -> dict:
    room = user.room_assigned
    return {
        'id': user.pk,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'gender': user.gender,
        'phoneNumber': user.phone_number,
        'matricNumber': user.matric_number,
        'level': user.level,
        'department': user.department,
        'isActive': user.is_active,
        'roomAssigned': {
            'id': room.pk,
            'number': room.number,
            'hostelName': room.hostel_name,
            'type': room.type,
        } if room else None,
        'createdAt': user.created_at.isoformat() if user.created_at else None,
    }
