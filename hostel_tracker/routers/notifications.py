import uuid
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, func, select

from hostel_tracker.core.exceptions import NotFoundError
from hostel_tracker.db.db import commit, get_session
from hostel_tracker.models.notification import Notification
from hostel_tracker.services.policy import Actor
from hostel_tracker.utils.auth_helper import get_current_actor


router = APIRouter()

@router.get("")
def get_my_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    query = (
        select(Notification)
        .where(Notification.user_id == actor.id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )

    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712

    notifications = session.exec(query).all()

    return {"notifications": notifications}

@router.get("/count")
def get_unread_notifications_count(
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    count = session.exec(
        select(func.count(Notification.id))
        .where(Notification.user_id == actor.id)
        .where(Notification.is_read == False)  # noqa: E712
    ).one()

    return { "count": count }

@router.post("/{notification_id}/mark-read")
def mark_notification_read(
    notification_id: uuid.UUID,
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    notif = session.exec(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == actor.id)
    ).first()

    if not notif:
        raise NotFoundError("Notification")

    notif.is_read = True
    session.add(notif)
    commit(session)

    return {"ok": True}

@router.post("/mark-all-read")
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    actor: Actor = Depends(get_current_actor),
):
    notifications = session.exec(
        select(Notification)
        .where(Notification.user_id == actor.id)
        .where(Notification.is_read == False)  # noqa: E712
    ).all()

    for notif in notifications:
        notif.is_read = True
        session.add(notif)

    commit(session)

    return {"ok": True}
