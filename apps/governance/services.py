"""Services for Governance app."""
import logging
from typing import List
from uuid import UUID

from .models import Announcement
from .dtos import AnnouncementIn

logger = logging.getLogger(__name__)


def list_announcements() -> List[Announcement]:
    """All announcements, newest first."""
    return list(Announcement.objects.order_by('-created_at'))


def create_announcement(payload: AnnouncementIn, created_by) -> Announcement:
    title = payload.title.strip()
    if not title:
        raise ValueError("Title is required")
    announcement = Announcement.objects.create(
        title=title,
        description=payload.description,
        created_by=created_by,
    )
    logger.info(f"Announcement {announcement.id} published by {getattr(created_by, 'email', 'system')}")
    return announcement


def delete_announcement(announcement_id: UUID) -> bool:
    deleted, _ = Announcement.objects.filter(id=announcement_id).delete()
    return deleted > 0
