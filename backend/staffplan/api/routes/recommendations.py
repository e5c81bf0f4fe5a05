from fastapi import APIRouter, Depends

from staffplan.api.dependencies import get_recommendation_service
from staffplan.api.http_errors import http_error
from staffplan.core.errors import StaffplanError
from staffplan.schemas.recommendations import RecommendationQuery, RecommendationWeek
from staffplan.services.recommendation import RecommendationService

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("/week", response_model=RecommendationWeek)
async def recommend_week(
    payload: RecommendationQuery,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationWeek:
    try:
        return await service.recommend_week(payload)
    except StaffplanError as exc:
        raise http_error(exc) from exc
