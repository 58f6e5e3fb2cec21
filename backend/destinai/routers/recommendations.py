"""Recommendations router: preference profile in, five destinations out."""

import logging

from fastapi import APIRouter, Depends

from destinai.schemas.recommendation import RecommendationRequest, RecommendationResponse
from destinai.services.recommendation.recommender import DestinationRecommender, destination_recommender

logger = logging.getLogger(__name__)

router = APIRouter()


def get_recommender() -> DestinationRecommender:
    return destination_recommender


@router.post("", response_model=RecommendationResponse)
async def recommend(
    req: RecommendationRequest,
    recommender: DestinationRecommender = Depends(get_recommender),
):
    """Generate five country recommendations for the submitted preferences.

    Terminal pipeline errors propagate to the app-level handler, which maps
    them to 504 / 502 / 422.
    """
    profile = req.to_profile()
    logger.info(
        f"Recommendation requested: who={profile.who.value} season={profile.season.value} "
        f"activities={len(profile.activities)}"
    )
    result = await recommender.generate(profile)
    return RecommendationResponse.from_result(result)
