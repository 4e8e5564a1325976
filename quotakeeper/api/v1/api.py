"""API routes for the FastAPI application."""

from fastapi import APIRouter

from quotakeeper.api.v1.endpoints import admin, health, usage

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(usage.router, prefix="/usage", tags=["usage"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
