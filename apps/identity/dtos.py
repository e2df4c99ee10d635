"""DTOs for Identity app."""
from dataclasses import dataclass
from uuid import UUID
from typing import Optional, List

from ninja import Schema


@dataclass(frozen=True)
class UserDTO:
    id: UUID
    email: str
    name: str
    photo_url: Optional[str]
    role: str
    apartment_id: Optional[UUID]
    permissions: List[str]


class UserIn(Schema):
    email: str
    name: str = ""
    photo_url: Optional[str] = None


class UserOut(Schema):
    id: UUID
    email: str
    name: str
    photo_url: Optional[str] = None
    role: str
    apartment_id: Optional[UUID] = None


class RoleOut(Schema):
    email: str
    role: str
    apartment_id: Optional[UUID] = None


class TokenIn(Schema):
    email: str


class TokenResponse(Schema):
    success: bool
    token: Optional[str] = None
    message: Optional[str] = None
