from fastapi import APIRouter
from venuebook.api.v1.routes.auth import router as auth_router
from venuebook.api.v1.routes.bookings import router as bookings_router
from venuebook.api.v1.routes.support import router as support_router
from venuebook.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(bookings_router)
api_router.include_router(support_router)
api_router.include_router(admin_router)
