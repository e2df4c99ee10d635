"""DTOs and API schemas for the Membership app."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from ninja import Schema


@dataclass(frozen=True)
class RequestDTO:
    id: UUID
    email: str
    user_name: str
    apartment_id: UUID
    block_name: str
    floor_no: int
    apartment_no: str
    rent: Decimal
    status: str
    decided_by_email: str
    decided_at: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class AllocationDTO:
    id: UUID
    email: str
    apartment_id: UUID
    request_id: Optional[UUID]
    allocated_at: datetime


@dataclass(frozen=True)
class MemberApartmentDTO:
    """An allocation joined with the apartment it points to."""
    email: str
    apartment_id: UUID
    block_name: str
    floor_no: int
    apartment_no: str
    rent: Decimal
    allocated_at: datetime


# =============================================================================
# Request Schemas
# =============================================================================

class RequestIn(Schema):
    email: str
    apartment_id: UUID
    name: str = ""


class DecisionIn(Schema):
    id: UUID
    status: str  # 'accepted' or 'rejected'


class AllocationIn(Schema):
    request_id: UUID


class RoleUpdateIn(Schema):
    email: str
    role: str
    apartment_id: Optional[UUID] = None
    delete_apartment: bool = False


# =============================================================================
# Response Schemas
# =============================================================================

class RequestOut(Schema):
    id: UUID
    email: str
    user_name: str
    apartment_id: UUID
    block_name: str
    floor_no: int
    apartment_no: str
    rent: Decimal
    status: str
    decided_at: Optional[datetime] = None
    created_at: datetime


class AllocationOut(Schema):
    id: UUID
    email: str
    apartment_id: UUID
    request_id: Optional[UUID] = None
    allocated_at: datetime


class MemberOut(Schema):
    email: str
    role: str
    apartment_id: Optional[UUID] = None


class MemberApartmentOut(Schema):
    email: str
    apartment_id: UUID
    block_name: str
    floor_no: int
    apartment_no: str
    rent: Decimal
    allocated_at: datetime


class RequestResultOut(Schema):
    status: str
    message: str
    request: Optional[RequestOut] = None


class AllocationResultOut(Schema):
    status: str
    message: str
    allocation: Optional[AllocationOut] = None


class RoleResultOut(Schema):
    status: str
    message: str
    user: Optional[MemberOut] = None
