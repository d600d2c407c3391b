"""
Derived views over the materialized review and popular-strain lists.

Everything here is a pure function of its arguments: the same inputs always
produce the same views, so callers may recompute on every change.
"""
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from strain_tracker.core.config import settings
from strain_tracker.schemas.review import Review, PopularStrainEntry
from strain_tracker.schemas.views import (
    CategoryBreakdown,
    CategoryBucket,
    DerivedViews,
    FilterCriteria,
    Screen,
)

UNKNOWN_CATEGORY = "Unknown"


def matches_search(review: Review, term: str) -> bool:
    """Case-insensitive substring match on strain, effects, terpenes, brand or location."""
    needle = term.lower()
    if needle in (review.strain or "").lower():
        return True
    if review.effects and needle in review.effects.lower():
        return True
    if any(needle in terpene.lower() for terpene in review.terpenes or []):
        return True
    if review.brand and needle in review.brand.lower():
        return True
    if review.location and needle in review.location.lower():
        return True
    return False


def search_reviews(reviews: Sequence[Review], term: Optional[str]) -> List[Review]:
    if not term or not term.strip():
        return list(reviews)
    return [review for review in reviews if matches_search(review, term)]


def apply_filters(reviews: Sequence[Review], criteria: FilterCriteria) -> List[Review]:
    """AND of every active filter."""
    result = list(reviews)
    if criteria.strain_type:
        result = [r for r in result if r.strain_type == criteria.strain_type]
    if criteria.min_rating > 0:
        result = [r for r in result if r.rating >= criteria.min_rating]
    if criteria.brand.strip():
        brand = criteria.brand.lower()
        result = [r for r in result if r.brand and r.brand.lower() == brand]
    if criteria.location.strip():
        location = criteria.location.lower()
        result = [r for r in result if r.location and r.location.lower() == location]
    return result


def top_rated(reviews: Iterable[Review], limit: int = None) -> List[Review]:
    """Rating >= threshold, best first, newest first among equals."""
    if limit is None:
        limit = settings.TOP_RATED_LIMIT
    high = [r for r in reviews if r.rating >= settings.HIGH_RATING_THRESHOLD]
    high.sort(key=lambda r: (r.rating, r.timestamp), reverse=True)
    return high[:limit]


def category_breakdown(items: Iterable) -> CategoryBreakdown:
    """
    Count items per ``product_type``; missing values land in "Unknown".
    Buckets run from most to least common; ties keep first-seen order.
    """
    counts = Counter(item.product_type or UNKNOWN_CATEGORY for item in items)
    total = sum(counts.values())
    if total == 0:
        return CategoryBreakdown(total=0, buckets=[], has_data=False)
    return CategoryBreakdown(
        total=total,
        buckets=[
            CategoryBucket(label=label, count=count, share=count / total)
            for label, count in counts.most_common()
        ],
        has_data=True,
    )


def filter_for_screen(
    reviews: Sequence[Review],
    search_term: Optional[str],
    criteria: Optional[FilterCriteria],
    screen: Screen,
) -> List[Review]:
    """
    Search applies on every screen; the history filters only on the log
    screen; the home screen keeps the top-rated handful.
    """
    result = search_reviews(reviews, search_term)
    if screen == Screen.LOG and criteria is not None:
        result = apply_filters(result, criteria)
    if screen == Screen.HOME:
        return top_rated(result)
    return result


def derive_views(
    reviews: Sequence[Review],
    popular: Sequence[PopularStrainEntry],
    search_term: Optional[str] = None,
    criteria: Optional[FilterCriteria] = None,
    screen: Screen = Screen.LOG,
) -> DerivedViews:
    return DerivedViews(
        screen=screen,
        reviews=filter_for_screen(reviews, search_term, criteria, screen),
        popular=list(popular),
        top_rated_breakdown=category_breakdown(
            r for r in reviews if r.rating >= settings.HIGH_RATING_THRESHOLD
        ),
        popular_breakdown=category_breakdown(popular),
    )


class FilterState:
    """
    Mutable search/filter inputs of one live view.

    ``update`` takes the client's camelCase keys (``searchTerm``,
    ``filterType``, ``filterRating``, ``filterBrand``, ``filterLocation``,
    ``screen``); keys not present keep their current value.
    """

    def __init__(self, screen: Screen = Screen.LOG):
        self.search_term = ""
        self.criteria = FilterCriteria()
        self.screen = screen

    def update(self, message: dict) -> None:
        """Apply a partial update; raises ValueError and changes nothing on bad input."""
        merged = {**self.criteria.model_dump(by_alias=True), **{
            key: value for key, value in message.items()
            if key in ("filterType", "filterRating", "filterBrand", "filterLocation")
        }}
        criteria = FilterCriteria.model_validate(merged)
        screen = Screen(message["screen"]) if "screen" in message else self.screen
        search_term = message.get("searchTerm", self.search_term)
        if not isinstance(search_term, str):
            raise ValueError("searchTerm must be a string")

        self.criteria = criteria
        self.screen = screen
        self.search_term = search_term

    def derive(self, reviews, popular) -> DerivedViews:
        return derive_views(reviews, popular, self.search_term, self.criteria, self.screen)
