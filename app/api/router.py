"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from app.api.auth import router as auth_router
from app.api.admin import router as admin_router
from app.api.clients import router as clients_router
from app.api.personnel import router as personnel_router
from app.api.work_orders import router as work_orders_router
from app.api.signatures import router as signatures_router
from app.api.projects import router as projects_router
from app.api.dashboard import router as dashboard_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(clients_router)
api_router.include_router(personnel_router)
api_router.include_router(work_orders_router)
api_router.include_router(signatures_router)
api_router.include_router(projects_router)
api_router.include_router(dashboard_router)
