"""Personalized recommendation routes."""

from typing import Optional

from fastapi import APIRouter, Depends

from campusreads.api.dependencies import get_borrower, get_recommender
from campusreads.api.schemas import RecommendationItem, RecommendationsResponse
from campusreads.ports.recommender import RecommenderPort

router = APIRouter(tags=["Recommendations"])


@router.get("/recommendations", response_model=RecommendationsResponse)
async def get_recommendations(
    borrower: Optional[str] = Depends(get_borrower),
    recommender: RecommenderPort = Depends(get_recommender),
) -> RecommendationsResponse:
    """Get up to five available books the borrower is likely to want next."""
    results = await recommender.recommend(borrower)
    return RecommendationsResponse(
        recommendations=[
            RecommendationItem(
                isbn=rec.entry.isbn,
                title=rec.entry.title,
                author=rec.entry.author,
                category=rec.entry.category,
                available_copies=rec.entry.available_copies,
                reason=rec.reason,
            )
            for rec in results
        ]
    )
