"""
Submission rules for a review.

Rules run in order and the first failure wins:

1. ``strain`` (trimmed) is non-empty
2. ``rating`` is one of 1-5
3. no more than ``MAX_TERPENES`` terpenes
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from strain_tracker.core.config import settings

REQUIRED_MESSAGE = "Strain Name and Rating are required."
TOO_MANY_TERPENES_MESSAGE = "Cannot log more than {limit} terpenes."


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None
    message: Optional[str] = None


VALID = ValidationResult(ok=True)


def validate_review(candidate: Mapping[str, Any], max_terpenes: int = None) -> ValidationResult:
    """Check a candidate review document. Pure; never touches the store."""
    if max_terpenes is None:
        max_terpenes = settings.MAX_TERPENES

    strain = candidate.get("strain") or ""
    if not str(strain).strip():
        return ValidationResult(False, "missing_strain", REQUIRED_MESSAGE)

    rating = candidate.get("rating")
    if isinstance(rating, bool) or rating not in (1, 2, 3, 4, 5):
        return ValidationResult(False, "invalid_rating", REQUIRED_MESSAGE)

    terpenes = candidate.get("terpenes") or []
    if len(terpenes) > max_terpenes:
        return ValidationResult(
            False,
            "too_many_terpenes",
            TOO_MANY_TERPENES_MESSAGE.format(limit=max_terpenes),
        )

    return VALID
