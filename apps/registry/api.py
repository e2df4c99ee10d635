"""
Registry API endpoints.

Public apartment browsing plus the admin-only availability, allocation flip
and dashboard statistics endpoints.
"""
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.http import HttpRequest
from ninja import Query, Router
from ninja.errors import HttpError

from apps.identity.decorators import has_permission
from apps.identity.permissions import Permissions
from apps.governance.audit_service import log_action, AuditAction
from .dtos import ApartmentIn, ApartmentOut, ApartmentPageOut, AvailabilityOut, StatisticsOut
from .services import create_apartment, is_apartment_available, list_apartments, mark_unavailable
from .analytics_service import get_statistics

router = Router(tags=["Registry"])


@router.get("/apartments", response=ApartmentPageOut, auth=None)
def get_apartments(
    request: HttpRequest,
    min_rent: Optional[Decimal] = Query(None, alias="minRent"),
    max_rent: Optional[Decimal] = Query(None, alias="maxRent"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
):
    """
    Paginated, rent-filtered listing sorted by ascending rent.

    Query Parameters:
    - minRent / maxRent: inclusive rent range (defaults: 0 and unbounded)
    - page: 1-indexed page number
    - limit: page size; omit to receive every match on one page
    """
    try:
        result = list_apartments(min_rent=min_rent, max_rent=max_rent, page=page, limit=limit)
    except ValueError as e:
        raise HttpError(400, str(e))

    return {
        "apartments": result.apartments,
        "total": result.total,
        "page": result.page,
        "total_pages": result.total_pages,
    }


@router.post("/apartments", response=ApartmentOut, auth=None)
@has_permission(Permissions.REGISTRY_MANAGE_APARTMENT)
def create_apartment_api(request: HttpRequest, payload: ApartmentIn):
    """
    Add an apartment listing.

    Requires REGISTRY_MANAGE_APARTMENT permission.
    """
    try:
        apartment = create_apartment(payload)
    except ValueError as e:
        raise HttpError(400, str(e))
    log_action(
        action=AuditAction.CREATE_APARTMENT,
        target_type="Apartment",
        target_id=apartment.id,
        target_label=apartment.full_label,
        performed_by=request.auth_user,
        context={"rent": str(apartment.rent)},
    )
    return apartment


@router.get("/apartment-status/{apartment_id}", response=AvailabilityOut, auth=None)
@has_permission(Permissions.REGISTRY_VIEW_STATUS)
def get_apartment_status(request: HttpRequest, apartment_id: UUID):
    """Whether the apartment can currently be requested."""
    available = is_apartment_available(apartment_id)
    if available is None:
        raise HttpError(404, "Apartment not found")
    return {"available": available}


@router.patch("/allocate-apartment/{apartment_id}", response=ApartmentOut, auth=None)
@has_permission(Permissions.REGISTRY_MANAGE_APARTMENT)
def allocate_apartment(request: HttpRequest, apartment_id: UUID):
    """
    Mark an apartment unavailable. Safe to retry.

    Recording an accepted request already performs this flip; the endpoint
    remains for clients that allocate in two steps.
    """
    apartment = mark_unavailable(apartment_id)
    if not apartment:
        raise HttpError(404, "Apartment not found")
    log_action(
        action=AuditAction.FLIP_AVAILABILITY,
        target_type="Apartment",
        target_id=apartment.id,
        target_label=apartment.full_label,
        performed_by=request.auth_user,
        context={"booking_status": apartment.booking_status},
    )
    return apartment


@router.get("/statistics", response=StatisticsOut, auth=None)
@has_permission(Permissions.REGISTRY_VIEW_STATISTICS)
def get_statistics_api(request: HttpRequest):
    """Occupancy percentages and user counts for the admin dashboard."""
    return get_statistics()
