from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from homeshelf.services.home_sections import plan_home_sections
from homeshelf.services.jellyfin.service import JellyfinService, get_jellyfin_service
from homeshelf.services.recommendation.home import HomeRecommendationService, get_home_recommendation_service

router = APIRouter(prefix="/users/{user_id}/home", tags=["home"])


@router.get("/new-and-popular", summary="New and Popular row")
async def get_new_and_popular(
    user_id: str, service: HomeRecommendationService = Depends(get_home_recommendation_service)
) -> dict:
    items = await service.get_new_and_popular_items(user_id)
    return {"Items": [item.to_api() for item in items]}


@router.get("/top-picks", summary="Top picks for you row")
async def get_top_picks(
    user_id: str, service: HomeRecommendationService = Depends(get_home_recommendation_service)
) -> dict:
    items = await service.get_top_picks_items(user_id)
    return {"Items": [item.to_api() for item in items]}


@router.get("/sections", summary="Ordered home section plan")
async def get_sections(
    user_id: str,
    enable_overflow: bool = Query(default=True),
    jellyfin: JellyfinService = Depends(get_jellyfin_service),
) -> dict:
    """
    Which rows the home screen should show, in order, and how many items each gets.
    """
    try:
        views = await jellyfin.get_user_views(user_id)
        user = await jellyfin.get_user(user_id)
    except Exception as e:
        logger.exception(f"Failed to load views for {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Could not reach the media server")

    excluded = (user.get("Configuration") or {}).get("LatestItemsExcludes") or []
    sections = plan_home_sections(views, excluded, enable_overflow)
    return {"Sections": [section.model_dump() for section in sections]}
