from ninja import Schema
from ninja.orm import create_schema
from uuid import UUID
from datetime import datetime
from typing import Optional, Any
from .models import Announcement

AnnouncementOut = create_schema(Announcement, fields=['id', 'title', 'description', 'created_at'])


class AnnouncementIn(Schema):
    title: str
    description: str


class AuditLogOut(Schema):
    id: UUID
    action: str
    target_type: str
    target_id: UUID
    target_label: str
    performed_by_email: Optional[str] = None
    performed_at: datetime
    context: Any
