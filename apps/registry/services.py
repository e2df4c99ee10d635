import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction

from .models import Apartment, BookingStatus
from .dtos import ApartmentIn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApartmentDTO:
    """Data Transfer Object for Apartment - used for cross-app communication."""
    id: UUID
    block_name: str
    floor_no: int
    apartment_no: str
    rent: Decimal
    image_url: Optional[str]
    booking_status: str

    @property
    def is_available(self) -> bool:
        return self.booking_status == BookingStatus.AVAILABLE

    @property
    def full_label(self) -> str:
        return f"Block {self.block_name}, Floor {self.floor_no}, Apt {self.apartment_no}"


@dataclass(frozen=True)
class ApartmentPage:
    apartments: List[Apartment]
    total: int
    page: int
    total_pages: int


def _to_dto(apartment: Apartment) -> ApartmentDTO:
    return ApartmentDTO(
        id=apartment.id,
        block_name=apartment.block_name,
        floor_no=apartment.floor_no,
        apartment_no=apartment.apartment_no,
        rent=apartment.rent,
        image_url=apartment.image_url,
        booking_status=apartment.booking_status,
    )


def get_apartment_dto(apartment_id: UUID) -> Optional[ApartmentDTO]:
    """
    Get an Apartment as a DTO.
    Used by membership and ledger to validate apartment references.
    """
    try:
        return _to_dto(Apartment.objects.get(id=apartment_id))
    except Apartment.DoesNotExist:
        return None


def list_apartments(
    min_rent: Optional[Decimal] = None,
    max_rent: Optional[Decimal] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> ApartmentPage:
    """
    Rent-filtered listing, cheapest first.

    Page k of size P holds the apartments ranked [(k-1)*P, k*P). Without a
    limit every matching apartment is returned as a single page.
    """
    if page < 1:
        raise ValueError("page must be 1 or greater")
    if limit is not None and limit < 1:
        raise ValueError("limit must be 1 or greater")

    queryset = Apartment.objects.filter(rent__gte=min_rent or 0)
    if max_rent is not None:
        queryset = queryset.filter(rent__lte=max_rent)
    queryset = queryset.order_by('rent', 'block_name', 'apartment_no')

    total = queryset.count()

    if limit is None:
        return ApartmentPage(
            apartments=list(queryset),
            total=total,
            page=1,
            total_pages=1 if total else 0,
        )

    skip = (page - 1) * limit
    return ApartmentPage(
        apartments=list(queryset[skip:skip + limit]),
        total=total,
        page=page,
        total_pages=math.ceil(total / limit),
    )


def is_apartment_available(apartment_id: UUID) -> Optional[bool]:
    """Availability derived from booking_status; None if the apartment is unknown."""
    apartment = get_apartment_dto(apartment_id)
    if not apartment:
        return None
    return apartment.is_available


def create_apartment(payload: ApartmentIn) -> Apartment:
    """Raises ValueError when the block already has that apartment number."""
    data = payload.dict()
    if Apartment.objects.filter(block_name=data["block_name"], apartment_no=data["apartment_no"]).exists():
        raise ValueError(f"Apartment {data['block_name']}-{data['apartment_no']} already exists")
    try:
        with transaction.atomic():
            return Apartment.objects.create(**data)
    except IntegrityError:
        raise ValueError(f"Apartment {data['block_name']}-{data['apartment_no']} already exists")


def set_booking_status(apartment_id: UUID, status: str) -> Optional[ApartmentDTO]:
    """
    Set an apartment's booking status. Idempotent.
    Joins the caller's transaction when there is one.
    """
    with transaction.atomic():
        try:
            apartment = Apartment.objects.select_for_update().get(id=apartment_id)
        except Apartment.DoesNotExist:
            return None

        if apartment.booking_status != status:
            apartment.booking_status = status
            apartment.save(update_fields=['booking_status', 'updated_at'])
            logger.info(f"Apartment {apartment.id} is now {status}")
        return _to_dto(apartment)


def mark_unavailable(apartment_id: UUID) -> Optional[ApartmentDTO]:
    return set_booking_status(apartment_id, BookingStatus.UNAVAILABLE)


def mark_available(apartment_id: UUID) -> Optional[ApartmentDTO]:
    return set_booking_status(apartment_id, BookingStatus.AVAILABLE)
