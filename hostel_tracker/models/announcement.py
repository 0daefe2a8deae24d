import uuid
from typing import List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel
from datetime import datetime, timezone

from hostel_tracker.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Announcement(SQLModel, table=True):
    __tablename__ = "announcements"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    title: str
    content: str

    # Targeting; an empty list means "everyone"
    target_hostels: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    target_blocks: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    target_roles: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_by: int = Field(foreign_key="users.id")
    is_active: bool = Field(default=True, index=True)

    author: Optional[User] = Relationship()
