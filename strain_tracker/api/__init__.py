"""
API routers package.
"""
from strain_tracker.api import health, auth, reviews, dashboard, ai, reference, live

__all__ = [
    "health",
    "auth",
    "reviews",
    "dashboard",
    "ai",
    "reference",
    "live",
]
