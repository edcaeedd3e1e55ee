from fastapi import APIRouter

from app.api.v1.endpoints import health, password, reports, uploads

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(uploads.router)
api_router.include_router(password.router)
api_router.include_router(reports.router)
