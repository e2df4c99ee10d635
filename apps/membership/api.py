"""
Membership API endpoints.

Apartment requests, admin decisions, allocation recording and role
management. Business-rule rejections come back as a ``status`` field; only
``forbidden`` and ``not_found`` change the HTTP status code.
"""
from typing import List, Optional

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.identity.jwt_auth import require_auth
from apps.identity.decorators import has_permission, ensure_self_or_permission
from apps.identity.permissions import Permissions
from .dtos import (
    RequestIn, DecisionIn, AllocationIn, RoleUpdateIn,
    RequestOut, RequestResultOut, AllocationResultOut, RoleResultOut, MemberApartmentOut,
)
from .models import RequestStatus
from . import services

router = Router(tags=["Membership"])


def _result_body(result, key: str) -> dict:
    return {
        "status": result.outcome.value,
        "message": result.message,
        key: result.payload,
    }


@router.post("/request-apartment", response={200: RequestResultOut, 403: RequestResultOut, 404: RequestResultOut}, auth=None)
def request_apartment(request: HttpRequest, payload: RequestIn):
    """
    Submit a request to occupy an apartment.

    The caller must be the requesting user and hold the 'user' role.
    """
    user = require_auth(request)
    result = services.submit_request(
        caller=user,
        email=payload.email,
        apartment_id=payload.apartment_id,
        user_name=payload.name,
    )
    return result.status_code, _result_body(result, "request")


@router.get("/requests", response=List[RequestOut], auth=None)
@has_permission(Permissions.MEMBERSHIP_REVIEW_REQUEST)
def get_requests(request: HttpRequest, status: Optional[str] = RequestStatus.PENDING):
    """
    Requests awaiting review, oldest first.

    Pass ``status=all`` to include decided requests.
    """
    if status == "all":
        status = None
    elif status not in RequestStatus.values:
        raise HttpError(400, f"Unknown status '{status}'")
    return services.list_requests(status=status)


@router.patch("/update-request", response={200: RequestResultOut, 404: RequestResultOut}, auth=None)
@has_permission(Permissions.MEMBERSHIP_REVIEW_REQUEST)
def update_request(request: HttpRequest, payload: DecisionIn):
    """Accept or reject a pending request."""
    try:
        result = services.decide_request(payload.id, payload.status, decided_by=request.auth_user)
    except ValueError as e:
        raise HttpError(400, str(e))
    return result.status_code, _result_body(result, "request")


@router.post("/accepted-requests", response={200: AllocationResultOut, 404: AllocationResultOut}, auth=None)
@has_permission(Permissions.MEMBERSHIP_REVIEW_REQUEST)
def accepted_requests(request: HttpRequest, payload: AllocationIn):
    """
    Record the allocation for an accepted request.

    Creates the allocation, flips the apartment to unavailable and promotes
    the requester to member. Retrying returns the same allocation.
    """
    result = services.record_allocation(payload.request_id, performed_by=request.auth_user)
    return result.status_code, _result_body(result, "allocation")


@router.patch("/update-role", response={200: RoleResultOut, 404: RoleResultOut}, auth=None)
@has_permission(Permissions.MEMBERSHIP_MANAGE_MEMBER)
def update_role(request: HttpRequest, payload: RoleUpdateIn):
    """
    Change a user's role, releasing their apartment when requested.

    Demoting a member always frees the apartment they occupied.
    """
    try:
        result = services.update_role(
            email=payload.email,
            role=payload.role,
            performed_by=request.auth_user,
            apartment_id=payload.apartment_id,
            delete_apartment=payload.delete_apartment,
        )
    except ValueError as e:
        raise HttpError(400, str(e))
    return result.status_code, _result_body(result, "user")


@router.get("/my-apartment/{email}", response=MemberApartmentOut, auth=None)
@has_permission(Permissions.MEMBERSHIP_VIEW_OWN_APARTMENT)
def my_apartment(request: HttpRequest, email: str):
    """The apartment allocated to ``email``. Self, or any member for admins."""
    ensure_self_or_permission(request.auth_user, email, Permissions.MEMBERSHIP_MANAGE_MEMBER)

    apartment = services.get_member_apartment(email)
    if not apartment:
        raise HttpError(404, "No apartment allocated")
    return apartment
