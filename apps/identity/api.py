"""
Identity API endpoints.

Token issuance, logout, sign-in registration and role lookups. Tokens are
returned in the body for bearer use and also set as an httpOnly cookie.
"""
from typing import List, Optional
from ninja import Router
from ninja.errors import HttpError
from django.conf import settings
from django.http import HttpRequest, HttpResponse

from .decorators import has_permission
from .dtos import UserIn, UserOut, RoleOut, TokenIn, TokenResponse
from .models import UserRole
from .permissions import Permissions
from .services import get_or_create_user, get_user_dto, list_users, normalize_email
from .jwt_auth import (
    TOKEN_COOKIE_NAME,
    create_access_token,
    get_cookie_settings,
)

router = Router(tags=["Identity"])


def is_production() -> bool:
    return not settings.DEBUG


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/jwt", response=TokenResponse, auth=None)
def issue_token(request: HttpRequest, payload: TokenIn):
    """
    Issue a bearer token for the provided identity claim.

    The token is returned in the body and set in an httpOnly cookie.
    """
    email = normalize_email(payload.email)
    if not email:
        raise HttpError(400, "Email is required")

    token = create_access_token(email)
    response = HttpResponse(
        TokenResponse(success=True, token=token).model_dump_json(),
        content_type='application/json'
    )
    response.set_cookie(TOKEN_COOKIE_NAME, token, **get_cookie_settings(is_production()))
    return response


@router.get("/logout", response=TokenResponse, auth=None)
def logout(request: HttpRequest):
    """Clear the token cookie. Bearer clients simply discard their token."""
    response = HttpResponse(
        TokenResponse(success=True, message="Logged out").model_dump_json(),
        content_type='application/json'
    )
    response.delete_cookie(TOKEN_COOKIE_NAME, path='/')
    return response


# =============================================================================
# User Endpoints
# =============================================================================

@router.post("/users", response=UserOut, auth=None)
def register_user(request: HttpRequest, payload: UserIn):
    """
    Create the user on first sign-in; return the stored record afterwards.
    """
    if not normalize_email(payload.email):
        raise HttpError(400, "Email is required")
    user, _ = get_or_create_user(payload)
    return user


@router.get("/user/{email}", response=RoleOut, auth=None)
def get_user_role(request: HttpRequest, email: str):
    """Role record used by clients to pick their dashboard."""
    user = get_user_dto(email)
    if not user:
        raise HttpError(404, "User not found")
    return user


@router.get("/users", response=List[UserOut], auth=None)
@has_permission(Permissions.IDENTITY_VIEW_USER)
def list_all_users(request: HttpRequest, role: Optional[str] = None):
    """
    List users, optionally by role (e.g. ``?role=member`` for the members page).
    """
    if role and role not in UserRole.values:
        raise HttpError(400, f"Unknown role '{role}'")
    return list_users(role)
