from decimal import Decimal
from typing import List, Optional

from ninja import Schema, Field
from ninja.orm import create_schema

from .models import Apartment

ApartmentOut = create_schema(Apartment, exclude=['created_at', 'updated_at'])


class ApartmentIn(Schema):
    block_name: str
    floor_no: int = Field(1, ge=0)
    apartment_no: str
    rent: Decimal = Field(..., ge=0)
    image_url: Optional[str] = None


class ApartmentPageOut(Schema):
    apartments: List[ApartmentOut]
    total: int
    page: int
    total_pages: int


class AvailabilityOut(Schema):
    available: bool


class StatisticsOut(Schema):
    total_apartments: int
    available_percentage: Decimal
    unavailable_percentage: Decimal
    users: int
    members: int
