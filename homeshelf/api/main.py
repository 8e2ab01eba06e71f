from fastapi import APIRouter

from .endpoints.health import router as health_router
from .endpoints.home import router as home_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Homeshelf API is running"}


api_router.include_router(health_router)
api_router.include_router(home_router)
