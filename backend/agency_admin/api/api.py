from fastapi import APIRouter

from agency_admin.api.routes import analytics, audit, auth, errors

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(errors.router)
api_router.include_router(analytics.router)
api_router.include_router(audit.router)
