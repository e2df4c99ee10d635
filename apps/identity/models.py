import uuid
from django.db import models


class UserRole(models.TextChoices):
    USER = 'user', 'User'
    MEMBER = 'member', 'Member'
    ADMIN = 'admin', 'Administrator'


class User(models.Model):
    """
    A person known to the system, keyed by email.

    Created on first sign-in with role USER. The role only changes through
    the membership workflow (allocation, admin role updates).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    photo_url = models.URLField(blank=True, null=True)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.USER
    )
    # Apartment currently allocated to this user (registry Apartment id, no FK)
    apartment_id = models.UUIDField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['email']

    def __str__(self):
        return self.email

    @property
    def is_member(self) -> bool:
        return self.role == UserRole.MEMBER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
