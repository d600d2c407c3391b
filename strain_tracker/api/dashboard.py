"""
Home dashboard and popular strains.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from strain_tracker.api.deps import get_session
from strain_tracker.schemas.review import PopularStrainEntry
from strain_tracker.schemas.views import DashboardResponse, Screen
from strain_tracker.services.aggregation import derive_views
from strain_tracker.services.reference_data import DEFAULT_STATE, lookup_legality
from strain_tracker.services.session import ClientSession


router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    search: Optional[str] = Query(None, alias="searchTerm"),
    state: str = Query(DEFAULT_STATE),
    session: ClientSession = Depends(get_session),
):
    """
    Top-rated reviews (after search), community popular strains, product-type
    breakdowns for both, and the legality of ``state``.
    """
    session.require_identity()
    views = derive_views(
        session.sync.reviews,
        session.sync.popular,
        search_term=search,
        screen=Screen.HOME,
    )
    return DashboardResponse(
        top_rated=views.reviews,
        popular=views.popular,
        top_rated_breakdown=views.top_rated_breakdown,
        popular_breakdown=views.popular_breakdown,
        legality=lookup_legality(state),
    )


@router.get("/popular", response_model=List[PopularStrainEntry])
async def popular_strains(session: ClientSession = Depends(get_session)):
    """Most recent distinct community favourites."""
    session.require_identity()
    return session.sync.popular
