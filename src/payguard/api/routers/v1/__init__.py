"""API v1 routers."""

from fastapi import APIRouter

from .privacy import router as privacy_router

router = APIRouter(prefix="/v1")

router.include_router(privacy_router)

__all__ = ["router", "privacy_router"]
