"""
API v1 router setup
Organized into: public (self-service booking) and dashboard (staff) routes
"""
from fastapi import APIRouter

from app.api.v1.public import availability as public_availability
from app.api.v1.dashboard import appointments, availability, suggestions

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (clients booking for themselves)
# ============================================================================
api_v1_router.include_router(
    public_availability.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# DASHBOARD ROUTES (staff)
# ============================================================================
api_v1_router.include_router(
    availability.router,
    prefix="/dashboard",
    tags=["Dashboard - Availability"]
)

api_v1_router.include_router(
    appointments.router,
    prefix="/dashboard",
    tags=["Dashboard - Appointments"]
)

api_v1_router.include_router(
    suggestions.router,
    prefix="/dashboard",
    tags=["Dashboard - Suggestions"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and route groups."""
    return {
        "version": "1.0",
        "routes": {
            "public": "/api/v1/public/businesses/{business_id}/...",
            "dashboard": "/api/v1/dashboard/businesses/{business_id}/..."
        }
    }
