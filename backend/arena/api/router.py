"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from arena.api.routes import venues, bookings

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(venues.router)
api_router.include_router(bookings.router)
