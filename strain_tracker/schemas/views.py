"""
Pydantic schemas for derived (read-side) views.
"""
from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

from strain_tracker.schemas.review import Review, PopularStrainEntry


class Screen(str, Enum):
    """Screen a derived view is computed for."""

    HOME = "home"
    LOG = "log"
    SUBMIT = "submit"


class FilterCriteria(BaseModel):
    """
    Review-history filters. Empty values mean "not filtering".
    """

    strain_type: Optional[str] = Field(None, alias="filterType")
    min_rating: int = Field(0, alias="filterRating", ge=0, le=5)
    brand: str = Field("", alias="filterBrand")
    location: str = Field("", alias="filterLocation")

    model_config = ConfigDict(populate_by_name=True)


class CategoryBucket(BaseModel):
    label: str
    count: int
    share: float = Field(..., description="Fraction of the total, 0-1")


class CategoryBreakdown(BaseModel):
    """
    Per-productType counts. ``has_data`` is False for an empty input, in
    which case ``buckets`` is empty and ``total`` is 0.
    """

    total: int
    buckets: List[CategoryBucket]
    has_data: bool = Field(..., alias="hasData")

    model_config = ConfigDict(populate_by_name=True)


class DerivedViews(BaseModel):
    """Everything a screen renders, computed from the current snapshots."""

    screen: Screen
    reviews: List[Review]
    popular: List[PopularStrainEntry]
    top_rated_breakdown: CategoryBreakdown = Field(..., alias="topRatedBreakdown")
    popular_breakdown: CategoryBreakdown = Field(..., alias="popularBreakdown")

    model_config = ConfigDict(populate_by_name=True)


class LegalityInfo(BaseModel):
    state: str
    status: str
    category: str


class DashboardResponse(BaseModel):
    """GET /api/dashboard"""

    top_rated: List[Review] = Field(..., alias="topRated")
    popular: List[PopularStrainEntry]
    top_rated_breakdown: CategoryBreakdown = Field(..., alias="topRatedBreakdown")
    popular_breakdown: CategoryBreakdown = Field(..., alias="popularBreakdown")
    legality: LegalityInfo

    model_config = ConfigDict(populate_by_name=True)


class ReviewListResponse(BaseModel):
    """GET /api/reviews"""

    total: int
    reviews: List[Review]


class VocabularyResponse(BaseModel):
    """GET /api/reference/vocabulary"""

    terpenes: List[str]
    strain_types: List[str] = Field(..., alias="strainTypes")
    product_types: List[str] = Field(..., alias="productTypes")
    states: List[str]

    model_config = ConfigDict(populate_by_name=True)
