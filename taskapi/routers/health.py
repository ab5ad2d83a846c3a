from fastapi import APIRouter

from taskapi.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"ok": True, "env": settings.ENV}
