"""API routes mounted under settings.API_PREFIX."""

from fastapi import APIRouter

from corpgate.api import admin, auth, records, user

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(user.router, prefix="/user", tags=["user"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(records.router, tags=["records"])
