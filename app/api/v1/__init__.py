"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import admin, auth, health, rbac

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(admin.router, prefix="/admin/users", tags=["admin"])
router.include_router(rbac.router, prefix="/rbac", tags=["rbac"])
