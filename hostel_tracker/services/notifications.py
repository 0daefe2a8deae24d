import uuid
from typing import Optional
from sqlmodel import Session

from hostel_tracker.models.notification import Notification


def notify(
    session: Session,
    user_id: int,
    type: str,
    title: str,
    message: str,
    issue_id: Optional[uuid.UUID] = None,
    item_id: Optional[uuid.UUID] = None,
) -> Notification:
    """Stage a notification in the caller's transaction; the caller commits."""
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        issue_id=issue_id,
        item_id=item_id,
    )
    session.add(notification)
    return notification
