from fastapi import APIRouter

from booking_engine.api.v1.endpoints import booking, staff

api_router = APIRouter()

# Customer-facing booking calendar endpoints
api_router.include_router(booking.router, prefix="/booking", tags=["booking"])

# Staff schedule endpoints
api_router.include_router(staff.router, prefix="/staff", tags=["staff"])
