"""
JWT authentication utilities for BuildIQ.

Issues and validates the bearer tokens that identify a caller by email, and
resolves the calling user for an incoming request. Clients send the token
in the ``Authorization: Bearer`` header; the httpOnly ``token`` cookie set at
sign-in is accepted as a fallback for browser clients.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from django.conf import settings
from django.http import HttpRequest
from ninja.errors import HttpError

from .models import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = 'HS256'
TOKEN_COOKIE_NAME = 'token'


def create_access_token(email: str) -> str:
    """
    Create an access token for the given identity claim.

    Expires after JWT_EXPIRE_HOURS (5 hours by default).
    """
    now = datetime.now(timezone.utc)
    payload = {
        'sub': email,
        'email': email,
        'iat': now,
        'exp': now + timedelta(hours=settings.JWT_EXPIRE_HOURS),
        'type': 'access',
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a token.

    Returns:
        Decoded payload if valid, None if invalid or expired.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_email_from_token(token: str) -> Optional[str]:
    payload = decode_token(token)
    if payload and payload.get('type') == 'access' and payload.get('sub'):
        return payload['sub']
    return None


def extract_token(request: HttpRequest) -> Optional[str]:
    """Read the bearer credential from the header, then the cookie."""
    header = request.headers.get('Authorization', '')
    if header:
        scheme, _, value = header.partition(' ')
        if scheme.lower() == 'bearer' and value.strip():
            return value.strip()
        return None
    return request.COOKIES.get(TOKEN_COOKIE_NAME)


def get_current_user(request: HttpRequest) -> Optional[User]:
    """
    Resolve the user behind the request credential.

    Returns None for a missing, malformed or expired token, and for tokens
    whose email has no user record.
    """
    token = extract_token(request)
    if not token:
        return None

    email = get_email_from_token(token)
    if not email:
        return None

    try:
        return User.objects.get(email=email)
    except User.DoesNotExist:
        logger.warning(f"Token presented for unknown user {email}")
        return None


def require_auth(request: HttpRequest) -> User:
    """Require authentication. Raises 401 if not authenticated."""
    user = get_current_user(request)
    if not user:
        raise HttpError(401, "Authentication required")
    return user


def get_cookie_settings(is_production: bool = False) -> dict:
    """
    Cookie settings for the access token.

    Production: Secure, SameSite=None (frontend served from another origin)
    Development: not secure (localhost), SameSite=Strict
    """
    return {
        'httponly': True,
        'secure': is_production,
        'samesite': 'None' if is_production else 'Strict',
        'path': '/',
        'max_age': settings.JWT_EXPIRE_HOURS * 60 * 60,
    }
