import logging
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlmodel import Session, select

from hostel_tracker.core.exceptions import AuthenticationError, ConflictError
from hostel_tracker.db.db import commit, get_session
from hostel_tracker.models.user import User
from hostel_tracker.services.policy import Actor
from hostel_tracker.utils.auth_helper import (
    create_access_token,
    get_current_user,
    hash_password,
    require_management,
    verify_password,
)

router = APIRouter()

logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    phone: str = Field(min_length=5, max_length=20)
    hostel: str = Field(min_length=1, max_length=50)
    block: str = Field(min_length=1, max_length=20)
    room_number: Optional[str] = Field(default=None, max_length=20)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def user_profile(user: User) -> dict:
    return user.model_dump(exclude={"id", "password_hash"})


def token_response(user: User) -> dict:
    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": user_profile(user),
    }


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, session: Session = Depends(get_session)):
    email = payload.email.lower()

    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise ConflictError("Email already registered")

    # self-registration only ever creates students
    user = User(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        phone=payload.phone.strip(),
        role="student",
        hostel=payload.hostel.strip(),
        block=payload.block.strip(),
        room_number=payload.room_number.strip() if payload.room_number else None,
    )

    session.add(user)
    commit(session, conflict_message="Email already registered")
    session.refresh(user)

    logger.info("Registered user %s", user.public_id)
    return token_response(user)


@router.post("/login")
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")

    return token_response(user)


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return user_profile(user)


@router.get("/staff")
def list_staff(
    session: Session = Depends(get_session),
    actor: Actor = Depends(require_management),
):
    staff = session.exec(
        select(User).where(User.role == "staff").order_by(User.name)
    ).all()

    return {
        "count": len(staff),
        "staff": [user_profile(user) for user in staff],
    }
