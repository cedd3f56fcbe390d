"""Central router aggregating all domain routers."""

from fastapi import APIRouter

from opsdesk.access.router import router as access_router
from opsdesk.activity.router import router as activity_router
from opsdesk.auth.router import router as auth_router
from opsdesk.documents.router import router as documents_router
from opsdesk.health.router import router as health_router
from opsdesk.pages.router import router as pages_router
from opsdesk.profile.router import router as profile_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(access_router)
api_router.include_router(profile_router)
api_router.include_router(activity_router)
api_router.include_router(documents_router)
api_router.include_router(pages_router)
