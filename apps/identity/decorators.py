from functools import wraps
from typing import Callable
from ninja.errors import HttpError
from django.http import HttpRequest
from .jwt_auth import require_auth
from .models import User
from .permissions import get_user_permissions


def has_permission(required_perm: str):
    """
    Decorator to enforce a specific permission on a Django Ninja endpoint.

    The authenticated user is made available as ``request.auth_user``.

    Usage:
        @router.get("/some-path", auth=None)
        @has_permission(Permissions.SOME_PERM)
        def my_view(request):
            ...
    """
    def decorator(view_func: Callable):
        @wraps(view_func)
        def wrapper(request: HttpRequest, *args, **kwargs):
            user = require_auth(request)

            perms = get_user_permissions(user)
            if required_perm not in perms:
                raise HttpError(403, "Permission denied")

            request.auth_user = user
            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


def ensure_self_or_permission(user: User, email: str, permission: str) -> None:
    """
    Allow access to another user's records only with the given permission.
    Raises 403 on identity mismatch.
    """
    if user.email == email.strip().lower():
        return
    if permission not in get_user_permissions(user):
        raise HttpError(403, "Forbidden")
