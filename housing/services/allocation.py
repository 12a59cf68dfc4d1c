"""
Assignment orchestration.

Links a student, a room and optionally an application in one database
transaction.  Every precondition is checked before the first write, and
the writes themselves (occupant row, room counter, application status,
audit row) commit or roll back together.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from housing.exceptions import AlreadyAssigned, NotFoundError, StateError, ValidationError
from housing.models import Application, Occupant, Room, User
from housing.services import rooms as ledger
from housing.services.audit import log_action
from housing.services.reports import invalidate_reports

logger = logging.getLogger(__name__)


def _get_student(student_id) -> User:
    student = User.objects.filter(pk=student_id, role=User.ROLE_STUDENT).first()
    if student is None:
        raise NotFoundError('Student not found')
    return student


@transaction.atomic
def assign_room(actor: User, *, student_id, room_id, application_id=None) -> tuple[Room, User, Optional[Application]]:
    student = _get_student(student_id)
    if Occupant.objects.filter(student_id=student.pk).exists():
        raise AlreadyAssigned()

    room = ledger.lock_room(room_id)

    application = None
    if application_id:
        application = Application.objects.select_for_update().filter(pk=application_id).first()
        if application is None:
            raise NotFoundError('Application not found')
        if application.student_id != student.pk:
            raise ValidationError(['Application does not belong to this student'])
        if not application.can_transition(Application.STATUS_ASSIGNED):
            raise StateError(f'Cannot assign a room to a {application.status} application')

    ledger.assign_student(room, student)
    if application is not None:
        application.mark_assigned(room)

    log_action(
        user=actor, action='room_assign', object_type='room', object_id=room.pk,
        detail={'student': student.pk, 'application': application.pk if application else None},
    )
    transaction.on_commit(invalidate_reports)
    logger.info('student %s assigned to room %s by %s', student.pk, room.pk, actor.pk)
    return room, student, application


@transaction.atomic
def remove_student(actor: User, *, room_id, student_id) -> Room:
    room = ledger.lock_room(room_id)
    ledger.release_student(room, student_id)

    released = Application.objects.select_for_update().filter(
        student_id=student_id, assigned_room=room, status=Application.STATUS_ASSIGNED,
    )
    for application in released:
        application.revert_assignment()

    log_action(
        user=actor, action='room_release', object_type='room', object_id=room.pk,
        detail={'student': str(student_id)},
    )
    transaction.on_commit(invalidate_reports)
    logger.info('student %s removed from room %s by %s', student_id, room.pk, actor.pk)
    return room
