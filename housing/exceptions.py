"""
Error taxonomy and the project-wide DRF exception handler.

Services and model transition methods raise the exceptions defined here;
``api_exception_handler`` turns every failure into the response envelope
``{success: false, message, errors?, code}``.
"""
from __future__ import annotations

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

# Serializer and field-level failures use DRF's own class.
ValidationError = exceptions.ValidationError


class ConflictError(exceptions.APIException):
    """Uniqueness violation (duplicate application, room number, ...)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Resource already exists'
    default_code = 'conflict'


class StateError(exceptions.APIException):
    """Operation is not valid for the entity's current state."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed in the current state'
    default_code = 'invalid_state'


class CapacityExceeded(StateError):
    default_detail = 'Room is not available'
    default_code = 'capacity_exceeded'


class GenderMismatch(StateError):
    default_detail = 'Student gender does not match room gender'
    default_code = 'gender_mismatch'


class AlreadyAssigned(StateError):
    default_detail = 'Student is already assigned to a room'
    default_code = 'already_assigned'


class NotAnOccupant(StateError):
    default_detail = 'Student not found in this room'
    default_code = 'not_an_occupant'


class NotFoundError(exceptions.NotFound):
    default_detail = 'Resource not found'
    default_code = 'not_found'


class TokenExpired(exceptions.AuthenticationFailed):
    default_detail = 'Token expired'
    default_code = 'token_expired'


class InvalidToken(exceptions.AuthenticationFailed):
    default_detail = 'Invalid token'
    default_code = 'token_not_valid'


class InternalError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'
    default_code = 'server_error'


def _flatten(detail, prefix: str = '') -> list[str]:
    """Turn nested serializer errors into ``["field: message", ...]``."""
    if isinstance(detail, dict):
        out: list[str] = []
        for key, value in detail.items():
            name = key if not prefix else f'{prefix}.{key}'
            if key == 'non_field_errors':
                name = prefix
            out.extend(_flatten(value, name))
        return out
    if isinstance(detail, list):
        out = []
        for item in detail:
            out.extend(_flatten(item, prefix))
        return out
    return [f'{prefix}: {detail}' if prefix else str(detail)]


def _code_of(exc: exceptions.APIException) -> str:
    codes = exc.get_codes()
    if isinstance(codes, str):
        return codes
    return getattr(exc, 'default_code', 'error')


def api_exception_handler(exc, context):
    # rest_framework.views loads the authentication classes, which import this module
    from rest_framework.views import exception_handler as drf_exception_handler

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', type(view).__name__ if view else 'unknown view')
        err = InternalError()
        return Response(
            {'success': False, 'message': str(err.detail), 'code': err.default_code},
            status=err.status_code,
        )

    if isinstance(exc, exceptions.ValidationError):
        errors = _flatten(exc.detail)
        message = errors[0] if len(errors) == 1 else 'Validation error'
        payload = {'success': False, 'message': message, 'errors': errors, 'code': 'invalid'}
    elif isinstance(exc, exceptions.NotAuthenticated):
        payload = {'success': False, 'message': 'Access token required', 'code': 'not_authenticated'}
    elif isinstance(exc, exceptions.APIException):
        detail = exc.detail
        if isinstance(detail, dict):
            message = str(detail.get('detail') or 'Request failed')
        elif isinstance(detail, list):
            message = '; '.join(str(d) for d in detail)
        else:
            message = str(detail)
        payload = {'success': False, 'message': message, 'code': _code_of(exc)}
    else:
        # Http404 / PermissionDenied from Django are converted by DRF.
        payload = {'success': False, 'message': str(resp.data.get('detail', 'Request failed')), 'code': 'error'}
    return Response(payload, status=resp.status_code, headers=_auth_headers(resp))


def _auth_headers(resp) -> dict:
    headers = {}
    for name in ('WWW-Authenticate', 'Retry-After'):
        if resp.has_header(name):
            headers[name] = resp[name]
    return headers
