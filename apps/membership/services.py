"""
Membership workflow services.

Request lifecycle:
    (none) -> PENDING -> ACCEPTED | REJECTED

Deciding a request and recording the allocation are separate commands. An
accepted request has no side effects until record_allocation() runs; that
command is idempotent and can be retried on its own.

Every service returns a Result carrying an Outcome instead of raising for
business-rule rejections.
"""
import logging
from typing import List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.outcomes import Outcome, Result
from apps.governance.audit_service import log_action, AuditAction
from apps.identity.models import UserRole
from apps.identity.services import get_user_dto, normalize_email, set_role
from apps.registry.services import get_apartment_dto, mark_available, mark_unavailable
from .models import ApartmentRequest, Allocation, RequestStatus
from .dtos import RequestDTO, AllocationDTO, MemberApartmentDTO

logger = logging.getLogger(__name__)


def _to_request_dto(req: ApartmentRequest) -> RequestDTO:
    return RequestDTO(
        id=req.id,
        email=req.email,
        user_name=req.user_name,
        apartment_id=req.apartment_id,
        block_name=req.block_name,
        floor_no=req.floor_no,
        apartment_no=req.apartment_no,
        rent=req.rent,
        status=req.status,
        decided_by_email=req.decided_by_email,
        decided_at=req.decided_at,
        created_at=req.created_at,
    )


def _to_allocation_dto(allocation: Allocation) -> AllocationDTO:
    return AllocationDTO(
        id=allocation.id,
        email=allocation.email,
        apartment_id=allocation.apartment_id,
        request_id=allocation.request_id,
        allocated_at=allocation.allocated_at,
    )


def has_pending_request(email: str) -> bool:
    return ApartmentRequest.objects.filter(
        email=normalize_email(email),
        status=RequestStatus.PENDING,
    ).exists()


# =============================================================================
# Request Workflow
# =============================================================================

def submit_request(caller, email: str, apartment_id: UUID, user_name: str = "") -> Result:
    """
    Create a PENDING request for ``email`` to occupy ``apartment_id``.

    Preconditions, checked in order:
    - the caller is the requesting user (FORBIDDEN)
    - the caller is not already a member (ALREADY_MEMBER)
    - the caller is a plain user, not an admin (FORBIDDEN)
    - no other request of this user is pending (ALREADY_REQUESTED)
    - the apartment exists (NOT_FOUND) and is available (UNAVAILABLE)

    Nothing else changes until an admin decides the request.
    """
    email = normalize_email(email)

    if caller.email != email:
        return Result(Outcome.FORBIDDEN)
    if caller.role == UserRole.MEMBER:
        return Result(Outcome.ALREADY_MEMBER)
    if caller.role != UserRole.USER:
        return Result(Outcome.FORBIDDEN)
    if has_pending_request(email):
        return Result(Outcome.ALREADY_REQUESTED)

    apartment = get_apartment_dto(apartment_id)
    if not apartment:
        return Result(Outcome.NOT_FOUND)
    if not apartment.is_available:
        return Result(Outcome.UNAVAILABLE)

    try:
        with transaction.atomic():
            req = ApartmentRequest.objects.create(
                email=email,
                user_name=user_name or getattr(caller, 'name', ''),
                apartment_id=apartment.id,
                block_name=apartment.block_name,
                floor_no=apartment.floor_no,
                apartment_no=apartment.apartment_no,
                rent=apartment.rent,
                status=RequestStatus.PENDING,
            )
    except IntegrityError:
        # Lost the race against a concurrent submission for the same user
        return Result(Outcome.ALREADY_REQUESTED)

    logger.info(f"Request {req.id} submitted by {email} for apartment {apartment.id}")
    log_action(
        action=AuditAction.SUBMIT_REQUEST,
        target_type="ApartmentRequest",
        target_id=req.id,
        target_label=apartment.full_label,
        performed_by=caller,
        context={"apartment_id": str(apartment.id)},
    )
    return Result(Outcome.OK, _to_request_dto(req))


def list_requests(status: Optional[str] = RequestStatus.PENDING) -> List[RequestDTO]:
    """Requests in submission order; all statuses when ``status`` is None."""
    queryset = ApartmentRequest.objects.all()
    if status:
        queryset = queryset.filter(status=status)
    return [_to_request_dto(r) for r in queryset.order_by('created_at')]


def decide_request(request_id: UUID, status: str, decided_by) -> Result:
    """
    Accept or reject a pending request. A decision is final (NOT_PENDING).

    Accepting does not allocate anything; see record_allocation().
    """
    if status not in (RequestStatus.ACCEPTED, RequestStatus.REJECTED):
        raise ValueError(f"Status must be '{RequestStatus.ACCEPTED}' or '{RequestStatus.REJECTED}'")

    with transaction.atomic():
        try:
            req = ApartmentRequest.objects.select_for_update().get(id=request_id)
        except ApartmentRequest.DoesNotExist:
            return Result(Outcome.NOT_FOUND)

        if req.status != RequestStatus.PENDING:
            return Result(Outcome.NOT_PENDING, _to_request_dto(req))

        req.status = status
        req.decided_by_email = getattr(decided_by, 'email', '') or ''
        req.decided_at = timezone.now()
        req.save(update_fields=['status', 'decided_by_email', 'decided_at', 'updated_at'])

    logger.info(f"Request {req.id} {status} by {req.decided_by_email}")
    log_action(
        action=AuditAction.ACCEPT_REQUEST if status == RequestStatus.ACCEPTED else AuditAction.REJECT_REQUEST,
        target_type="ApartmentRequest",
        target_id=req.id,
        target_label=req.email,
        performed_by=decided_by,
        context={"apartment_id": str(req.apartment_id)},
    )
    return Result(Outcome.OK, _to_request_dto(req))


# =============================================================================
# Allocation & Role Transitions
# =============================================================================

def _allocation_conflict(req: ApartmentRequest) -> Optional[Result]:
    """The outcome when an allocation already covers the requester or the apartment."""
    existing = Allocation.objects.select_for_update().filter(email=req.email).first()
    if existing:
        if existing.apartment_id == req.apartment_id:
            return Result(Outcome.OK, _to_allocation_dto(existing))
        return Result(Outcome.ALREADY_MEMBER)

    if Allocation.objects.filter(apartment_id=req.apartment_id).exists():
        return Result(Outcome.UNAVAILABLE)
    return None


@transaction.atomic
def record_allocation(request_id: UUID, performed_by) -> Result:
    """
    Materialize an accepted request.

    In one transaction: create the Allocation, mark the apartment
    UNAVAILABLE and make the requester a MEMBER of that apartment. Calling it
    again for the same request returns the existing allocation.
    """
    try:
        req = ApartmentRequest.objects.select_for_update().get(id=request_id)
    except ApartmentRequest.DoesNotExist:
        return Result(Outcome.NOT_FOUND)

    if req.status != RequestStatus.ACCEPTED:
        return Result(Outcome.NOT_ACCEPTED)

    conflict = _allocation_conflict(req)
    if conflict:
        return conflict

    user = get_user_dto(req.email)
    if not user or not get_apartment_dto(req.apartment_id):
        return Result(Outcome.NOT_FOUND)

    try:
        with transaction.atomic():
            allocation = Allocation.objects.create(
                email=req.email,
                apartment_id=req.apartment_id,
                request_id=req.id,
                allocated_by_email=getattr(performed_by, 'email', '') or '',
            )
    except IntegrityError:
        # Another allocation for this email or apartment committed first
        logger.warning(f"Allocation for request {req.id} lost a race, re-reading")
        return _allocation_conflict(req) or Result(Outcome.UNAVAILABLE)

    apartment = mark_unavailable(req.apartment_id)
    set_role(req.email, UserRole.MEMBER, req.apartment_id)

    logger.info(f"Allocated apartment {req.apartment_id} to {req.email}")
    log_action(
        action=AuditAction.ALLOCATE_APARTMENT,
        target_type="Allocation",
        target_id=allocation.id,
        target_label=apartment.full_label,
        performed_by=performed_by,
        context={"email": req.email, "apartment_id": str(req.apartment_id)},
    )
    log_action(
        action=AuditAction.UPDATE_ROLE,
        target_type="User",
        target_id=user.id,
        target_label=user.email,
        performed_by=performed_by,
        context={"from": user.role, "to": UserRole.MEMBER},
    )
    return Result(Outcome.OK, _to_allocation_dto(allocation))


@transaction.atomic
def update_role(
    email: str,
    role: str,
    performed_by,
    apartment_id: Optional[UUID] = None,
    delete_apartment: bool = False,
) -> Result:
    """
    Admin role transition, optionally releasing the member's apartment.

    The apartment is released when ``delete_apartment`` is set, or when the
    new role is not MEMBER while an allocation exists. The apartment to free
    is read from the user's stored apartment_id before that field is
    overwritten. MEMBER can only be kept on an existing allocation
    (NO_ALLOCATION otherwise).
    """
    if role not in UserRole.values:
        raise ValueError(f"Unknown role '{role}'")

    user = get_user_dto(email)
    if not user:
        return Result(Outcome.NOT_FOUND)

    previous_role = user.role
    previous_apartment_id = user.apartment_id
    allocation = Allocation.objects.select_for_update().filter(email=user.email).first()

    release = delete_apartment or (role != UserRole.MEMBER and allocation is not None)

    if role == UserRole.MEMBER:
        if release or allocation is None:
            return Result(Outcome.NO_ALLOCATION)
        if apartment_id is not None and apartment_id != allocation.apartment_id:
            return Result(Outcome.NO_ALLOCATION)

    released_apartment_id = None
    if release:
        released_apartment_id = previous_apartment_id or (allocation.apartment_id if allocation else None)
        if allocation:
            allocation.delete()
        if released_apartment_id:
            mark_available(released_apartment_id)
        new_apartment_id = None
    else:
        new_apartment_id = allocation.apartment_id if role == UserRole.MEMBER else None

    updated = set_role(user.email, role, new_apartment_id)

    if released_apartment_id:
        logger.info(f"Released apartment {released_apartment_id} held by {user.email}")
        log_action(
            action=AuditAction.RELEASE_APARTMENT,
            target_type="Apartment",
            target_id=released_apartment_id,
            target_label=user.email,
            performed_by=performed_by,
        )
    logger.info(f"Role of {user.email} changed from {previous_role} to {role}")
    log_action(
        action=AuditAction.UPDATE_ROLE,
        target_type="User",
        target_id=user.id,
        target_label=user.email,
        performed_by=performed_by,
        context={
            "from": previous_role,
            "to": role,
            "released_apartment_id": str(released_apartment_id) if released_apartment_id else None,
        },
    )
    return Result(Outcome.OK, updated)


def get_member_apartment(email: str) -> Optional[MemberApartmentDTO]:
    """The caller's allocation joined with the apartment details."""
    allocation = Allocation.objects.filter(email=normalize_email(email)).first()
    if not allocation:
        return None

    apartment = get_apartment_dto(allocation.apartment_id)
    if not apartment:
        logger.error(f"Allocation {allocation.id} points to missing apartment {allocation.apartment_id}")
        return None

    return MemberApartmentDTO(
        email=allocation.email,
        apartment_id=apartment.id,
        block_name=apartment.block_name,
        floor_no=apartment.floor_no,
        apartment_no=apartment.apartment_no,
        rent=apartment.rent,
        allocated_at=allocation.allocated_at,
    )
