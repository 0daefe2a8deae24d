from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Recipient
    user_id: int = Field(foreign_key="users.id", index=True)

    # values: "issue_assigned", "issue_status_changed", "claim_created", "claim_approved", "claim_rejected"
    type: str = Field(index=True)

    title: str
    message: str

    issue_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="issues.id",
        index=True,
        ondelete="SET NULL",
    )
    item_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="lost_found_items.id",
        index=True,
        ondelete="SET NULL",
    )

    is_read: bool = Field(default=False)
