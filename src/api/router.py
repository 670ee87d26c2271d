"""API router aggregation."""

from fastapi import APIRouter

from src.api.health import router as health_router
from src.api.l10 import router as l10_router

api_router = APIRouter()
api_router.include_router(health_router)
# Agenda navigation and meeting lifecycle
api_router.include_router(l10_router)
