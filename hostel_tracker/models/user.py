import uuid
from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


ROLES = ("student", "staff", "management")


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: str = Field(default_factory=lambda: uuid.uuid4().hex, index=True, unique=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    phone: str

    role: str = Field(default="student")  # Possible roles: student, staff, management (fixed at creation)

    # Residence; copied onto issues and items when they are reported
    hostel: str = Field(index=True)
    block: str
    room_number: Optional[str] = Field(default=None)
