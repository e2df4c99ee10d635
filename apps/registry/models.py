import uuid
from django.db import models


class BookingStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    UNAVAILABLE = 'unavailable', 'Unavailable'


class Apartment(models.Model):
    """
    A rentable apartment listing.

    booking_status is UNAVAILABLE exactly while a membership Allocation
    references the apartment.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    block_name = models.CharField(max_length=50, help_text="Block or building")
    floor_no = models.PositiveSmallIntegerField(default=1)
    apartment_no = models.CharField(max_length=50)
    rent = models.DecimalField(max_digits=10, decimal_places=2)
    image_url = models.URLField(blank=True, null=True)

    booking_status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.AVAILABLE,
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['rent', 'block_name', 'apartment_no']
        unique_together = ['block_name', 'apartment_no']

    def __str__(self):
        return f"{self.block_name} - {self.apartment_no}"

    @property
    def full_label(self):
        return f"Block {self.block_name}, Floor {self.floor_no}, Apt {self.apartment_no}"

    @property
    def is_available(self) -> bool:
        return self.booking_status == BookingStatus.AVAILABLE
