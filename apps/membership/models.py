import uuid
from django.db import models
from django.db.models import Q


class RequestStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACCEPTED = 'accepted', 'Accepted'
    REJECTED = 'rejected', 'Rejected'


class ApartmentRequest(models.Model):
    """
    A user's ask to occupy an apartment, subject to admin approval.

    Status moves PENDING -> ACCEPTED or PENDING -> REJECTED exactly once.
    Apartment details are a snapshot taken at submission time.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(db_index=True)
    user_name = models.CharField(max_length=255, blank=True)

    # Registry Apartment id (no FK - modular boundary)
    apartment_id = models.UUIDField(db_index=True)
    block_name = models.CharField(max_length=50)
    floor_no = models.PositiveSmallIntegerField()
    apartment_no = models.CharField(max_length=50)
    rent = models.DecimalField(max_digits=10, decimal_places=2)

    status = models.CharField(
        max_length=20,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING
    )
    decided_by_email = models.EmailField(blank=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['email'],
                condition=Q(status='pending'),
                name='one_pending_request_per_email',
            ),
        ]

    def __str__(self):
        return f"{self.email} -> {self.block_name}/{self.apartment_no} ({self.status})"


class Allocation(models.Model):
    """
    The durable assignment of one apartment to one member.

    Exists exactly while the user holds role MEMBER and the apartment is
    UNAVAILABLE.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True)
    apartment_id = models.UUIDField(unique=True)
    request_id = models.UUIDField(null=True, blank=True)

    allocated_by_email = models.EmailField(blank=True)
    allocated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-allocated_at']

    def __str__(self):
        return f"{self.email} occupies {self.apartment_id}"
