from fastapi import APIRouter

from portal.api.routes import (
    application_requests,
    applications,
    departments,
    favorites,
    my_applications,
    session,
)

api_router = APIRouter(prefix="/api")
api_router.include_router(session.router)
api_router.include_router(applications.router)
api_router.include_router(departments.router)
api_router.include_router(favorites.router)
api_router.include_router(my_applications.router)
api_router.include_router(application_requests.router)
