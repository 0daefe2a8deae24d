import uuid
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from hostel_tracker.db.db import get_session
from hostel_tracker.models.announcement import Announcement
from hostel_tracker.services import announcements as announcement_engine
from hostel_tracker.services.announcements import AnnouncementCreate, AnnouncementUpdate
from hostel_tracker.services.policy import Actor
from hostel_tracker.utils.auth_helper import get_current_actor


router = APIRouter()


def serialize_announcement(announcement: Announcement) -> dict:
    data = announcement.model_dump(exclude={"created_by"})
    author = announcement.author
    data["created_by"] = {"name": author.name, "role": author.role} if author else None
    return data


@router.get("")
def list_announcements(
    include_all: bool = Query(False, alias="all"),
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    announcements = announcement_engine.list_announcements(session, actor, include_all=include_all)

    return {
        "count": len(announcements),
        "announcements": [serialize_announcement(a) for a in announcements],
    }


@router.post("", status_code=201)
def create_announcement(
    payload: AnnouncementCreate,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    announcement = announcement_engine.create_announcement(session, actor, payload)

    return {
        "message": "Announcement created successfully",
        "announcement": serialize_announcement(announcement),
    }


@router.get("/{announcement_id}")
def get_announcement(
    announcement_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_announcement(announcement_engine.get_announcement(session, actor, announcement_id))


@router.patch("/{announcement_id}")
def update_announcement(
    announcement_id: uuid.UUID,
    payload: AnnouncementUpdate,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    announcement = announcement_engine.update_announcement(session, actor, announcement_id, payload)

    return {
        "message": "Announcement updated successfully",
        "announcement": serialize_announcement(announcement),
    }


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    announcement_engine.delete_announcement(session, actor, announcement_id)
    return {"message": "Announcement deleted successfully"}
