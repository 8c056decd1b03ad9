"""Routers package."""

from services.payments_service.routers.fawaterak import router as fawaterak_router

__all__ = ["fawaterak_router"]
