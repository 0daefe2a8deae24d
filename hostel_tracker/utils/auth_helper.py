from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlmodel import Session, select

from hostel_tracker.core.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    JWT_SECRET,
)
from hostel_tracker.core.exceptions import AuthenticationError, AuthorizationError
from hostel_tracker.db.db import get_session
from hostel_tracker.models.user import User
from hostel_tracker.services.policy import MANAGEMENT, Actor

# auto_error is off so a missing header goes through our own 401
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))


def create_access_token(user: User, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    now = datetime.now(timezone.utc)

    jwt_payload = {
        "sub": user.public_id,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }

    return jwt.encode(jwt_payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    if not token:
        raise AuthenticationError("No token, authorization denied")

    payload = decode_access_token(token.credentials)

    user = session.exec(
        select(User).where(User.public_id == payload.get("sub"))
    ).first()

    if not user:
        raise AuthenticationError("Token is not valid")

    return user


def get_current_actor(user: User = Depends(get_current_user)) -> Actor:
    return Actor.from_user(user)


def require_management(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.role != MANAGEMENT:
        raise AuthorizationError("Management access required", reason="role_not_permitted")
    return actor
