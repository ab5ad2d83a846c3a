# taskapi/deps.py
import uuid
from typing import Optional

from fastapi import Depends, Header
from sqlmodel import Session

from taskapi.db import get_session
from taskapi.errors import NotFoundError, UnauthorizedError
from taskapi.models import User
from taskapi.security import parse_token
from taskapi.services import credentials


def _bearer(authorization: Optional[str]) -> str:
    auth = (authorization or "").strip()
    if not auth.lower().startswith("bearer "):
        raise UnauthorizedError("Not authenticated")
    token = auth[7:].strip()
    if not token:
        raise UnauthorizedError("Not authenticated")
    return token


def get_current_user(
    authorization: Optional[str] = Header(None),
    session: Session = Depends(get_session),
) -> User:
    """
    Reads Authorization: Bearer <token>, decodes the JWT and loads the account.
    Unknown or deactivated accounts are rejected like a bad token.
    """
    payload = parse_token(_bearer(authorization))  # raises 401 if invalid

    try:
        user_id = uuid.UUID(str(payload.get("sub") or ""))
    except ValueError:
        raise UnauthorizedError("Invalid token payload")

    try:
        user = credentials.get_account(session, user_id)
    except NotFoundError:
        raise UnauthorizedError("Could not validate credentials")
    if not user.is_active:
        raise UnauthorizedError("Could not validate credentials")
    return user
