"""
SQLAlchemy models package.
"""
from strain_tracker.models.document import DocumentRecord

__all__ = [
    "DocumentRecord",
]
