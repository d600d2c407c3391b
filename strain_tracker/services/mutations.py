"""
Writes against the document store.

Nothing here touches a session's materialized lists directly: a write only
becomes visible locally through the next snapshot. The one exception is the
``analysisLoading`` overlay, which is set before an analysis starts and
cleared if it fails.
"""
from typing import Any, Dict, Optional, Union

from strain_tracker.core.config import settings
from strain_tracker.core.exceptions import (
    NotFoundException,
    ReviewValidationException,
    StoreUnavailableException,
)
from strain_tracker.core.logging import logger, log_error
from strain_tracker.db.document_store import DocumentStore, SERVER_TIMESTAMP
from strain_tracker.db.paths import CollectionPaths
from strain_tracker.schemas.ai import StrainNameResponse
from strain_tracker.schemas.review import (
    AnalysisResponse,
    CreateReviewResponse,
    ReviewInput,
    ShareResponse,
)
from strain_tracker.services.generative import (
    FALLBACK_MESSAGES,
    GenerativeTextService,
    split_suggestions,
)
from strain_tracker.services.identity import Identity
from strain_tracker.services.sharing import Clipboard, share_review
from strain_tracker.services.sync_store import SyncStore
from strain_tracker.services.validation import validate_review

SAVE_FAILED_MESSAGE = "Failed to save your review."
DELETE_FAILED_MESSAGE = "Failed to delete review."
ANALYSIS_SAVE_FAILED_MESSAGE = "Failed to save the analysis."

# Fields copied from a review into its public popular-strain entry
POPULAR_FIELDS = ("strain", "rating", "type", "productType", "potency", "brand", "terpenes")


def parse_cost(value: Optional[Union[float, str]]) -> float:
    """Non-negative float; anything unparsable or negative is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        cost = float(value)
    except (TypeError, ValueError):
        return 0.0
    if cost != cost or cost < 0:  # NaN or negative
        return 0.0
    return cost


def build_review_document(form: ReviewInput, owner_id: str) -> Dict[str, Any]:
    return {
        "strain": form.strain.strip(),
        "location": form.location.strip(),
        "cost": parse_cost(form.cost),
        "effects": form.effects.strip(),
        "rating": form.rating,
        "potency": form.potency.strip(),
        "flavor": form.flavor.strip(),
        "brand": form.brand.strip(),
        "type": form.strain_type.value,
        "productType": form.product_type.value,
        "terpenes": list(form.terpenes),
        "timestamp": SERVER_TIMESTAMP,
        "ownerId": owner_id,
    }


def build_popular_entry(review_document: Dict[str, Any], added_by: str) -> Dict[str, Any]:
    entry = {key: review_document[key] for key in POPULAR_FIELDS}
    entry["addedBy"] = added_by
    entry["timestamp"] = SERVER_TIMESTAMP
    return entry


class MutationCoordinator:
    """
    Create, delete and enrich reviews; format shares; ask for name ideas.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: CollectionPaths,
        generative: GenerativeTextService,
    ):
        self._store = store
        self._paths = paths
        self.generative = generative

    async def create_review(self, identity: Identity, form: ReviewInput) -> CreateReviewResponse:
        """
        Validate, write the private review, then mirror it to the public
        collection when highly rated. The two writes are not atomic: if the
        mirror fails the private review stays.
        """
        document = build_review_document(form, identity.uid)

        result = validate_review(document)
        if not result.ok:
            raise ReviewValidationException(result.reason, result.message)

        try:
            review_id = await self._store.add_document(
                self._paths.private_reviews(identity.uid), document
            )
        except Exception as e:
            log_error("Error adding review", error=e, uid=identity.uid)
            raise StoreUnavailableException(SAVE_FAILED_MESSAGE)

        mirrored = False
        if document["rating"] >= settings.HIGH_RATING_THRESHOLD:
            try:
                await self._store.add_document(
                    self._paths.popular_strains(),
                    build_popular_entry(document, identity.uid),
                )
                mirrored = True
            except Exception as e:
                log_error(
                    "Error mirroring review to popular strains",
                    error=e,
                    uid=identity.uid,
                    review_id=review_id,
                )
                raise StoreUnavailableException(
                    SAVE_FAILED_MESSAGE, {"reviewId": review_id, "mirrored": False}
                )

        logger.info(
            "Review created",
            extra={"uid": identity.uid, "review_id": review_id, "mirrored": mirrored},
        )
        return CreateReviewResponse(id=review_id, mirrored=mirrored)

    async def delete_review(self, identity: Identity, review_id: str) -> None:
        """Remove a private review. Its popular-strain entry, if any, stays."""
        try:
            removed = await self._store.delete_document(
                self._paths.private_reviews(identity.uid), review_id
            )
        except Exception as e:
            log_error("Error deleting review", error=e, uid=identity.uid, review_id=review_id)
            raise StoreUnavailableException(DELETE_FAILED_MESSAGE)

        if not removed:
            raise NotFoundException(f"Review not found: {review_id}", {"reviewId": review_id})

    async def enrich_review(
        self, identity: Identity, sync: SyncStore, review_id: str
    ) -> AnalysisResponse:
        """
        Summarize a review's effects notes and merge the text into the
        stored review as ``analysis``.
        """
        review = sync.find_review(review_id)
        if review is None:
            raise NotFoundException(f"Review not found: {review_id}", {"reviewId": review_id})
        if not sync.mark_analysis_loading(review_id):
            return AnalysisResponse(review_id=review_id, started=False)

        try:
            analysis = await self.generative.analyze_effects(review.effects)
            # Update-only: a review deleted during the call stays deleted
            updated = await self._store.update_document(
                self._paths.private_reviews(identity.uid),
                review_id,
                {"analysis": analysis},
            )
        except Exception as e:
            sync.clear_analysis_loading(review_id)
            log_error("Failed to run AI analysis", error=e, review_id=review_id)
            raise StoreUnavailableException(ANALYSIS_SAVE_FAILED_MESSAGE, {"reviewId": review_id})

        # Usually already cleared by the snapshot the write produced
        sync.clear_analysis_loading(review_id)

        if not updated:
            logger.info(
                "Review deleted before its analysis finished",
                extra={"uid": identity.uid, "review_id": review_id},
            )
            raise NotFoundException(f"Review not found: {review_id}", {"reviewId": review_id})

        return AnalysisResponse(review_id=review_id, started=True, analysis=analysis)

    async def suggest_strain_names(self, effects: str, flavor: str) -> StrainNameResponse:
        raw = await self.generative.suggest_strain_names(effects, flavor)
        if raw in FALLBACK_MESSAGES:
            return StrainNameResponse(suggestions=[], raw=raw)
        return StrainNameResponse(suggestions=split_suggestions(raw), raw=raw)

    @staticmethod
    def share(sync: SyncStore, clipboard: Clipboard, review_id: str) -> ShareResponse:
        review = sync.find_review(review_id)
        if review is None:
            raise NotFoundException(f"Review not found: {review_id}", {"reviewId": review_id})
        return share_review(review, clipboard)
