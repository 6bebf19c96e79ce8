"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from transport_backend.app.api.v1.endpoints import auth, fleet, trips, admin

router = APIRouter()

router.include_router(auth.router)
router.include_router(fleet.router)
router.include_router(trips.router)
router.include_router(admin.router)
