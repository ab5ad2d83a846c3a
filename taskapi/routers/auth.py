# taskapi/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from taskapi.db import get_session
from taskapi.deps import get_current_user
from taskapi.models import User
from taskapi.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ChangePasswordResponse,
    LoginRequest,
    SignupRequest,
    UserOut,
)
from taskapi.services import credentials

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=credentials.issue_token(user),
        user=UserOut.model_validate(user),
    )


# ----------------- Signup -----------------


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, session: Session = Depends(get_session)):
    user = credentials.register(
        session,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return _auth_response(user)


# ----------------- Login -----------------


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, session: Session = Depends(get_session)):
    user = credentials.authenticate(session, payload.email, payload.password)
    return _auth_response(user)


# ----------------- Change password -----------------


@router.post("/change-password", response_model=ChangePasswordResponse)
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ok = credentials.change_password(
        session,
        current_user.id,
        payload.current_password,
        payload.new_password,
    )
    return ChangePasswordResponse(ok=ok)
