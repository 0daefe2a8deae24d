"""Announcement targeting: a pure filter over each announcement's target lists."""

import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field
from sqlmodel import Session, select

from hostel_tracker.core.exceptions import NotFoundError, ValidationError
from hostel_tracker.db.db import commit
from hostel_tracker.models.announcement import Announcement
from hostel_tracker.models.user import ROLES
from hostel_tracker.services import policy
from hostel_tracker.services.policy import Actor, enforce

logger = logging.getLogger(__name__)

DEFAULT_TARGET_ROLES = ("student", "staff")


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    target_hostels: List[str] = Field(default_factory=list)
    target_blocks: List[str] = Field(default_factory=list)
    # omitted roles mean students and staff; pass [] to reach management too
    target_roles: List[str] = Field(default_factory=lambda: list(DEFAULT_TARGET_ROLES))


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    target_hostels: Optional[List[str]] = None
    target_blocks: Optional[List[str]] = None
    target_roles: Optional[List[str]] = None
    is_active: Optional[bool] = None


def _check_roles(roles: Optional[List[str]]) -> None:
    unknown = [role for role in roles or [] if role not in ROLES]
    if unknown:
        raise ValidationError(f"Unknown target roles: {', '.join(unknown)}")


def list_announcements(session: Session, actor: Actor, include_all: bool = False) -> List[Announcement]:
    query = select(Announcement).order_by(Announcement.created_at.desc())

    if include_all:
        enforce(policy.can_manage_announcements(actor), "Only management can list all announcements")
        return list(session.exec(query).all())

    announcements = session.exec(query.where(Announcement.is_active == True)).all()  # noqa: E712
    return [a for a in announcements if policy.can_view_announcement(actor, a)]


def get_announcement(session: Session, actor: Actor, announcement_id: uuid.UUID) -> Announcement:
    announcement = session.get(Announcement, announcement_id)
    if not announcement:
        raise NotFoundError("Announcement")

    # management can open anything it manages; others only active ones that target them
    if not actor.is_management and (
        not announcement.is_active or not policy.can_view_announcement(actor, announcement)
    ):
        raise NotFoundError("Announcement")

    return announcement


def create_announcement(session: Session, actor: Actor, data: AnnouncementCreate) -> Announcement:
    enforce(policy.can_manage_announcements(actor), "Only management can post announcements")
    _check_roles(data.target_roles)

    announcement = Announcement(
        title=data.title.strip(),
        content=data.content.strip(),
        target_hostels=data.target_hostels,
        target_blocks=data.target_blocks,
        target_roles=data.target_roles,
        created_by=actor.id,
    )

    session.add(announcement)
    commit(session)
    session.refresh(announcement)

    logger.info("Announcement %s posted by user %s", announcement.id, actor.id)
    return announcement


def update_announcement(
    session: Session,
    actor: Actor,
    announcement_id: uuid.UUID,
    data: AnnouncementUpdate,
) -> Announcement:
    enforce(policy.can_manage_announcements(actor), "Only management can edit announcements")
    _check_roles(data.target_roles)

    announcement = session.get(Announcement, announcement_id)
    if not announcement:
        raise NotFoundError("Announcement")

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(announcement, field, value)

    session.add(announcement)
    commit(session)
    session.refresh(announcement)

    return announcement


def delete_announcement(session: Session, actor: Actor, announcement_id: uuid.UUID) -> None:
    enforce(policy.can_manage_announcements(actor), "Only management can delete announcements")

    announcement = session.get(Announcement, announcement_id)
    if not announcement:
        raise NotFoundError("Announcement")

    session.delete(announcement)
    commit(session)

    logger.info("Announcement %s deleted by user %s", announcement_id, actor.id)
