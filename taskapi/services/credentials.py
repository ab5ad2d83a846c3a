# taskapi/services/credentials.py
"""
Credential manager: account creation, password checks and account status.

Unknown email, inactive account and wrong password all fail with the same
UnauthorizedError message so callers cannot tell which emails exist.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from taskapi import security
from taskapi.config import settings
from taskapi.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    store_errors,
)
from taskapi.models import User, utcnow

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _find_by_email(session: Session, email: str) -> Optional[User]:
    with store_errors("Failed to look up account"):
        return session.exec(select(User).where(User.email == email)).first()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return security.verify_password(plain_password, hashed_password)


def register(
    session: Session,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
) -> User:
    email_lower = normalize_email(email)
    if not email_lower or not password:
        raise BadRequestError("Email and password are required")

    if _find_by_email(session, email_lower):
        raise ConflictError("Email already exists")

    user = User(
        email=email_lower,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
        password_hash=security.hash_password(password),
        is_active=True,
    )
    session.add(user)
    with store_errors("Failed to create user account", session):
        try:
            session.commit()
        except IntegrityError as e:
            # unique index on email; lost a race with a concurrent signup
            session.rollback()
            raise ConflictError("Email already exists") from e
        session.refresh(user)

    logger.info("registered user %s", user.id)
    return user


def authenticate(session: Session, email: str, password: str) -> User:
    email_lower = normalize_email(email)
    user = _find_by_email(session, email_lower)
    if not user:
        logger.info("login rejected: unknown email")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not user.is_active:
        logger.info("login rejected: inactive user %s", user.id)
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        logger.info("login rejected: bad password for user %s", user.id)
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return user


def get_account(session: Session, user_id: uuid.UUID) -> User:
    with store_errors("Failed to retrieve user profile"):
        user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def change_password(session: Session, user_id: uuid.UUID, current_password: str, new_password: str) -> bool:
    user = get_account(session, user_id)

    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")
    if new_password == current_password:
        raise BadRequestError("New password must differ from the current password")
    if len(new_password or "") < settings.PASSWORD_MIN_LENGTH:
        raise BadRequestError(f"New password must be at least {settings.PASSWORD_MIN_LENGTH} characters")

    user.password_hash = security.hash_password(new_password)
    user.updated_at = utcnow()
    session.add(user)
    with store_errors("Failed to change password", session):
        session.commit()

    logger.info("password changed for user %s", user_id)
    return True


def issue_token(user: User) -> str:
    return security.create_access_token({"sub": str(user.id), "email": user.email})
