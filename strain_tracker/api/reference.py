"""
Static reference data endpoints.
"""
from typing import List
from fastapi import APIRouter

from strain_tracker.schemas.views import LegalityInfo, VocabularyResponse
from strain_tracker.services.reference_data import all_legality, lookup_legality, vocabulary


router = APIRouter(prefix="/api/reference", tags=["reference"])


@router.get("/legality", response_model=List[LegalityInfo])
async def list_legality():
    return all_legality()


@router.get("/legality/{state}", response_model=LegalityInfo)
async def get_legality(state: str):
    """Legality for one state; unlisted states report "Unknown"."""
    return lookup_legality(state)


@router.get("/vocabulary", response_model=VocabularyResponse)
async def get_vocabulary():
    return VocabularyResponse(**vocabulary())
