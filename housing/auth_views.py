"""
Authentication views.

Registration, login, profile and password management, plus the JWT
refresh/logout pair.
"""
from __future__ import annotations

import logging

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.throttling import AnonRateThrottle

from housing.authentication import ChallengeOnlyAuthentication
from housing.exceptions import InvalidToken, ValidationError
from housing.responses import created, ok
from housing.serializers.auth import (
    ChangePasswordSerializer,
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
)
from housing.services import users as user_service
from housing.services.audit import log_action

logger = logging.getLogger(__name__)


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


def _tokens_for(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {'token': str(refresh.access_token), 'refresh': str(refresh)}


# ---------------------------------------------------------------------
# Register / login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = user_service.register_user(s.model_fields())
    return created({'user': user_service.format_user(user), **_tokens_for(user)},
                   'User registered successfully')


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """
    Login with email or matric number plus password.
    Accepts fields:
      - email or matricNumber
      - password
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    ip = request.META.get('REMOTE_ADDR')

    try:
        user = user_service.authenticate_user(
            email=vd.get('email'), matric_number=vd.get('matricNumber'), password=vd['password'],
        )
    except AuthenticationFailed:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'login': vd.get('email') or vd.get('matricNumber'), 'ip': ip})
        raise

    log_action(user=user, action='login', object_type='user', object_id=user.pk,
               detail={'result': 'ok', 'ip': ip})
    return ok({'user': user_service.format_user(user), **_tokens_for(user)}, 'Login successful')


# ---------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def profile_view(request):
    user = request.user
    if request.method == 'PUT':
        s = ProfileUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        user = user_service.update_profile(user, s.model_fields())
        return ok({'user': user_service.format_user(user)}, 'Profile updated successfully')
    return ok({'user': user_service.format_user(user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user_service.change_password(request.user, s.validated_data['currentPassword'], s.validated_data['newPassword'])
    return ok(message='Password changed successfully')


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@authentication_classes([ChallengeOnlyAuthentication])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = TokenRefreshSerializer(data={'refresh': request.data.get('refresh', '')})
    try:
        s.is_valid(raise_exception=True)
    except TokenError as exc:
        raise InvalidToken(str(exc))
    data = {'token': s.validated_data['access']}
    if 'refresh' in s.validated_data:
        data['refresh'] = s.validated_data['refresh']
    return ok(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the user's refresh tokens."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            token = RefreshToken(refresh)
        except TokenError:
            raise ValidationError(['Invalid refresh token'])
        if str(token.get('user_id')) != str(request.user.pk):
            raise ValidationError(['Invalid refresh token'])
        token.blacklist()
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, was_created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(was_created)
    logger.info('user %s logged out, %s refresh token(s) blacklisted', request.user.pk, count)
    return ok({'blacklisted': count}, 'Logged out')
