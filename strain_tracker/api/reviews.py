"""
Review API endpoints (private log).
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query

from strain_tracker.api.deps import get_runtime, get_session
from strain_tracker.core.logging import logger
from strain_tracker.core.middleware import get_request_id
from strain_tracker.schemas.review import (
    AnalysisResponse,
    CreateReviewResponse,
    OkResponse,
    ReviewInput,
    ShareResponse,
)
from strain_tracker.schemas.views import FilterCriteria, ReviewListResponse, Screen
from strain_tracker.services.aggregation import filter_for_screen
from strain_tracker.services.runtime import Runtime
from strain_tracker.services.session import ClientSession


router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("", response_model=ReviewListResponse)
async def list_reviews(
    search: Optional[str] = Query(None, alias="searchTerm"),
    filter_type: Optional[str] = Query(None, alias="filterType"),
    filter_rating: int = Query(0, alias="filterRating", ge=0, le=5),
    filter_brand: str = Query("", alias="filterBrand"),
    filter_location: str = Query("", alias="filterLocation"),
    session: ClientSession = Depends(get_session),
):
    """
    Review history, newest first, after search and filters.

    Search is a case-insensitive substring match on strain, effects,
    terpenes, brand and location; filters are exact and combined with AND.
    """
    session.require_identity()
    criteria = FilterCriteria(
        strain_type=filter_type or None,
        min_rating=filter_rating,
        brand=filter_brand,
        location=filter_location,
    )
    reviews = filter_for_screen(session.sync.reviews, search, criteria, Screen.LOG)
    return ReviewListResponse(total=len(reviews), reviews=reviews)


@router.post("", response_model=CreateReviewResponse, status_code=201)
async def create_review(
    request: ReviewInput,
    runtime: Runtime = Depends(get_runtime),
    session: ClientSession = Depends(get_session),
):
    """
    Log a review. Ratings of 4 or 5 are also shared to popular strains.

    Raises:
        409: A submission is already in progress for this session
        422: Missing strain or rating, or more than 3 terpenes
        503: Store write failed
    """
    identity = session.require_identity()
    logger.info(
        "Processing review submission",
        extra={"request_id": get_request_id(), "uid": identity.uid, "rating": request.rating},
    )
    async with session.single_flight("create_review"):
        return await runtime.coordinator.create_review(identity, request)


@router.delete("/{review_id}", response_model=OkResponse)
async def delete_review(
    review_id: str,
    runtime: Runtime = Depends(get_runtime),
    session: ClientSession = Depends(get_session),
):
    """
    Delete a review from the private log.

    Raises:
        404: No such review
        503: Store write failed
    """
    identity = session.require_identity()
    await runtime.coordinator.delete_review(identity, review_id)
    return OkResponse()


@router.post("/{review_id}/analysis", response_model=AnalysisResponse)
async def analyze_review(
    review_id: str,
    runtime: Runtime = Depends(get_runtime),
    session: ClientSession = Depends(get_session),
):
    """
    Summarize the review's effects notes and store the summary on the review.
    ``started`` is False when an analysis for this review is already running.
    """
    identity = session.require_identity()
    return await runtime.coordinator.enrich_review(identity, session.sync, review_id)


@router.post("/{review_id}/share", response_model=ShareResponse)
async def share_review(
    review_id: str,
    runtime: Runtime = Depends(get_runtime),
    session: ClientSession = Depends(get_session),
):
    """Format the review as share text and copy it to the session clipboard."""
    session.require_identity()
    return runtime.coordinator.share(session.sync, session.clipboard, review_id)
