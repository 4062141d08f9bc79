"""Main API router."""

from fastapi import APIRouter, Depends

from questtrail.api.admin import router as admin_router
from questtrail.api.engine import router as engine_router
from questtrail.api.hall_of_fame import router as hall_of_fame_router
from questtrail.auth.rate_limit import admin_rate_limit, engine_rate_limit

api_router = APIRouter()
api_router.include_router(engine_router, dependencies=[Depends(engine_rate_limit)])
api_router.include_router(admin_router, dependencies=[Depends(admin_rate_limit)])
api_router.include_router(hall_of_fame_router)
