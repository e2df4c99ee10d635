"""Services for Identity app."""
import logging
from typing import Optional, Tuple
from uuid import UUID

from django.db.models import Count

from .models import User, UserRole
from .dtos import UserDTO, UserIn
from .permissions import get_user_permissions

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _to_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        email=user.email,
        name=user.name,
        photo_url=user.photo_url,
        role=user.role,
        apartment_id=user.apartment_id,
        permissions=get_user_permissions(user),
    )


def get_user_dto(email: str) -> Optional[UserDTO]:
    try:
        return _to_dto(User.objects.get(email=normalize_email(email)))
    except User.DoesNotExist:
        return None


def get_or_create_user(payload: UserIn) -> Tuple[UserDTO, bool]:
    """
    Idempotent sign-in registration.

    An existing record is returned untouched; a new one starts with role USER.
    """
    user, created = User.objects.get_or_create(
        email=normalize_email(payload.email),
        defaults={
            'name': payload.name,
            'photo_url': payload.photo_url,
            'role': UserRole.USER,
        },
    )
    if created:
        logger.info(f"Registered user {user.email}")
    return _to_dto(user), created


def list_users(role: Optional[str] = None) -> list[UserDTO]:
    users = User.objects.all()
    if role:
        users = users.filter(role=role)
    return [_to_dto(u) for u in users]


def set_role(email: str, role: str, apartment_id: Optional[UUID]) -> Optional[UserDTO]:
    """
    Overwrite a user's role and allocated apartment.

    Must run inside transaction.atomic(). Callers that release an apartment
    must read the previous apartment_id before calling this.
    """
    if role not in UserRole.values:
        raise ValueError(f"Unknown role '{role}'")
    try:
        user = User.objects.select_for_update().get(email=normalize_email(email))
    except User.DoesNotExist:
        return None

    user.role = role
    user.apartment_id = apartment_id
    user.save(update_fields=['role', 'apartment_id', 'updated_at'])
    return _to_dto(user)


def count_users_by_role() -> dict:
    counts = {role: 0 for role in UserRole.values}
    for row in User.objects.values('role').annotate(total=Count('id')):
        counts[row['role']] = row['total']
    return counts
