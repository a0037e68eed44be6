from fastapi import APIRouter

from .endpoints.analyze import router as analyze_router
from .endpoints.health import router as health_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Artlens API is running"}


api_router.include_router(health_router)
api_router.include_router(analyze_router)
