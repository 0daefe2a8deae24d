import uuid
from enum import Enum
from typing import List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel, UniqueConstraint
from datetime import datetime, timezone

from hostel_tracker.models.user import User


class IssueStatus(str, Enum):
    REPORTED = "reported"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


RESOLVED_STATUSES = (IssueStatus.RESOLVED.value, IssueStatus.CLOSED.value)

CATEGORIES = ("plumbing", "electrical", "cleanliness", "internet", "furniture", "other")
PRIORITIES = ("low", "medium", "high", "emergency")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Issue(SQLModel, table=True):
    __tablename__ = "issues"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    # Issue fields
    title: str
    description: str
    category: str = Field(index=True)
    priority: str = Field(index=True)
    status: str = Field(default=IssueStatus.REPORTED.value, index=True)
    is_public: bool = Field(default=True)
    media: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Ownership
    reporter_id: int = Field(foreign_key="users.id", index=True)
    assignee_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)

    # Location, copied from the reporter's profile at creation
    hostel: str = Field(index=True)
    block: str
    room: Optional[str] = None

    reporter: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Issue.reporter_id]"}
    )
    assignee: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Issue.assignee_id]"}
    )

    status_history: List["IssueStatusHistory"] = Relationship(
        back_populates="issue",
        sa_relationship_kwargs={"order_by": "IssueStatusHistory.id", "cascade": "all, delete-orphan"},
    )
    comments: List["IssueComment"] = Relationship(
        back_populates="issue",
        sa_relationship_kwargs={"order_by": "IssueComment.id", "cascade": "all, delete-orphan"},
    )
    upvotes: List["IssueUpvote"] = Relationship(
        back_populates="issue",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class IssueStatusHistory(SQLModel, table=True):
    __tablename__ = "issue_status_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    issue_id: uuid.UUID = Field(foreign_key="issues.id", index=True, ondelete="CASCADE")

    status: str
    changed_by: int = Field(foreign_key="users.id")
    timestamp: datetime = Field(default_factory=utcnow)
    remarks: Optional[str] = None

    issue: Optional[Issue] = Relationship(back_populates="status_history")
    changed_by_user: Optional[User] = Relationship()


class IssueComment(SQLModel, table=True):
    __tablename__ = "issue_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    issue_id: uuid.UUID = Field(foreign_key="issues.id", index=True, ondelete="CASCADE")

    user_id: int = Field(foreign_key="users.id")
    text: str
    timestamp: datetime = Field(default_factory=utcnow)

    issue: Optional[Issue] = Relationship(back_populates="comments")
    user: Optional[User] = Relationship()


class IssueUpvote(SQLModel, table=True):
    __tablename__ = "issue_upvotes"

    id: Optional[int] = Field(default=None, primary_key=True)
    issue_id: uuid.UUID = Field(foreign_key="issues.id", index=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)

    issue: Optional[Issue] = Relationship(back_populates="upvotes")

    __table_args__ = (
        # One upvote per user per issue
        UniqueConstraint("issue_id", "user_id", name="uq_issue_upvote_user"),
    )
