"""
Plain-text share card for a review, and the clipboard it is copied to.
"""
from typing import Optional

from strain_tracker.core.logging import logger
from strain_tracker.schemas.review import Review, ShareResponse

COPIED_MESSAGE = "Review details copied to clipboard! Ready to share."
COPY_FAILED_MESSAGE = "Could not copy text. Please copy manually."


def format_share_text(review: Review) -> str:
    terpenes = ", ".join(review.terpenes) if review.terpenes else "N/A"
    stars = "⭐" * review.rating if review.rating > 0 else "N/A"
    cost = f"{review.cost:.2f}" if review.cost else "N/A"
    logged = review.timestamp
    lines = [
        "*** Black Cannabis Lounge Strain Tracker ***",
        f"Strain: {review.strain} ({review.strain_type or 'N/A'} | {review.product_type or 'N/A'})",
        f"Rating: {stars}",
        f"Potency: {review.potency or 'N/A'}",
        f"Flavor: {review.flavor or 'N/A'}",
        f"Terpenes: {terpenes}",
        f"Brand: {review.brand or 'N/A'}",
        f"Purchased: {review.location or 'N/A'} for ${cost}",
        f"Effects/Notes: {review.effects or 'None'}",
        f"Logged on: {logged.month}/{logged.day}/{logged.year}",
    ]
    return "\n".join(lines)


class Clipboard:
    """Write-only clipboard of one session; holds the last copied text."""

    def __init__(self):
        self.text: Optional[str] = None

    def write(self, text: str) -> None:
        self.text = text


def share_review(review: Review, clipboard: Clipboard) -> ShareResponse:
    """Format ``review`` and copy it; a clipboard failure is reported, not raised."""
    text = format_share_text(review)
    try:
        clipboard.write(text)
    except Exception as e:
        logger.error(f"Could not copy text: {str(e)}", extra={"review_id": review.id})
        return ShareResponse(text=text, copied=False, message=COPY_FAILED_MESSAGE)
    return ShareResponse(text=text, copied=True, message=COPIED_MESSAGE)
