"""
Bearer token authentication.

This module defines a subclass of simplejwt's ``JWTAuthentication`` that
reports *why* a token was refused: an expired token and a malformed one
produce different messages so that clients know whether to refresh or to
log in again.  Keeping it apart from the views avoids circular imports
when REST framework loads authentication classes during start-up.
"""
from __future__ import annotations

import time

import jwt
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework.exceptions import AuthenticationFailed

from .exceptions import InvalidToken, TokenExpired
from .models import User


class BearerTokenAuthentication(JWTAuthentication):
    """``Authorization: Bearer <jwt>`` carrying a ``user_id`` claim."""

    def get_validated_token(self, raw_token):
        try:
            return AccessToken(raw_token)
        except TokenError:
            pass
        # Look at the claims without trusting them, only to pick a message.
        try:
            claims = jwt.decode(raw_token, options={'verify_signature': False})
        except jwt.PyJWTError:
            raise InvalidToken()
        exp = claims.get('exp')
        if isinstance(exp, (int, float)) and exp <= time.time():
            raise TokenExpired()
        raise InvalidToken()

    def get_user(self, validated_token):
        user_id = validated_token.get(api_settings.USER_ID_CLAIM)
        if user_id is None:
            raise InvalidToken()
        user = User.objects.filter(**{api_settings.USER_ID_FIELD: user_id}).first()
        if user is None or not user.is_active:
            raise AuthenticationFailed('Invalid token or user not found', code='user_not_found')
        return user


class ChallengeOnlyAuthentication(BearerTokenAuthentication):
    """Ignores the Authorization header but keeps the ``Bearer`` challenge.

    Used by the refresh endpoint, where a stale access token must not get
    in the way and a bad refresh token still has to answer 401.
    """

    def authenticate(self, request):
        return None
