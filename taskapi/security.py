# taskapi/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import bcrypt
from jose import JWTError, jwt

from taskapi import config
from taskapi.errors import BadRequestError, InternalError, UnauthorizedError

BCRYPT_MAX_BYTES = 72


# ----------------- Passwords -----------------


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise BadRequestError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=rounds or config.settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(raw, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Constant-time check of a plaintext against a bcrypt hash.
    A mismatch is False; a hash bcrypt cannot parse is an InternalError.
    """
    raw = plain_password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        # hash_password never accepts these, so no stored hash can match
        return False
    try:
        return bcrypt.checkpw(raw, (hashed_password or "").encode("utf-8"))
    except ValueError as e:
        raise InternalError("Password verification failed") from e


# ----------------- JWT -----------------


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.settings.JWT_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def parse_token(token: str) -> Dict[str, Any]:
    """
    Decodes a JWT and returns the payload dict or raises UnauthorizedError.
    """
    try:
        payload = jwt.decode(token, config.settings.JWT_SECRET, algorithms=[config.settings.JWT_ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Could not validate credentials")
    if not isinstance(payload, dict):
        raise UnauthorizedError("Could not validate credentials")
    return payload
