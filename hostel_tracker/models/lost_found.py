import uuid
from typing import List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel, UniqueConstraint
from datetime import datetime, timezone

from hostel_tracker.models.user import User


ITEM_STATUSES = ("lost", "found", "claimed")
CLAIM_STATUSES = ("pending", "approved", "rejected")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LostFoundItem(SQLModel, table=True):
    __tablename__ = "lost_found_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})

    # Reporter info
    reporter_id: int = Field(foreign_key="users.id", index=True)

    # Item fields
    item_name: str
    description: str
    location: str
    status: str = Field(index=True)  # values: "lost", "found", "claimed"
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    hostel: Optional[str] = Field(default=None, index=True)
    contact_info: Optional[str] = None

    reporter: Optional[User] = Relationship()
    claim_requests: List["ClaimRequest"] = Relationship(
        back_populates="item",
        sa_relationship_kwargs={
            "order_by": "ClaimRequest.request_date",
            "cascade": "all, delete-orphan",
        },
    )


class ClaimRequest(SQLModel, table=True):
    __tablename__ = "claim_requests"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    item_id: uuid.UUID = Field(foreign_key="lost_found_items.id", index=True, ondelete="CASCADE")

    # Claimant
    claimant_id: int = Field(foreign_key="users.id", index=True)
    request_date: datetime = Field(default_factory=utcnow)

    status: str = Field(default="pending", index=True)  # values: "pending", "approved", "rejected"
    decided_at: Optional[datetime] = None
    decided_by: Optional[int] = Field(default=None, foreign_key="users.id")

    item: Optional[LostFoundItem] = Relationship(back_populates="claim_requests")
    claimant: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[ClaimRequest.claimant_id]"}
    )

    __table_args__ = (
        # A user can file only one claim per item
        UniqueConstraint(
            "item_id",
            "claimant_id",
            name="uq_item_claimant"
        ),
    )
