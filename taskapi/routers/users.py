from fastapi import APIRouter, Depends

from taskapi.deps import get_current_user
from taskapi.models import User
from taskapi.schemas import UserProfileOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfileOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
