"""
Static reference data: per-state legality and the review vocabularies.
"""
from typing import Dict, List, Tuple

from strain_tracker.schemas.review import TERPENES, StrainType, ProductType
from strain_tracker.schemas.views import LegalityInfo

ILLEGAL = "illegal"
RECREATIONAL = "recreational"
MEDICINAL = "medicinal"

# state -> (status, display category)
US_CANNABIS_LEGALITY: Dict[str, Tuple[str, str]] = {
    "Alabama": ("Illegal", ILLEGAL),
    "Alaska": ("Recreational", RECREATIONAL),
    "Arizona": ("Recreational", RECREATIONAL),
    "California": ("Recreational", RECREATIONAL),
    "Colorado": ("Recreational", RECREATIONAL),
    "Delaware": ("Recreational", RECREATIONAL),
    "Florida": ("Medicinal", MEDICINAL),
    "Georgia": ("Medicinal", MEDICINAL),
    "Illinois": ("Recreational", RECREATIONAL),
    "Maryland": ("Recreational", RECREATIONAL),
    "Michigan": ("Recreational", RECREATIONAL),
    "New York": ("Recreational", RECREATIONAL),
    "North Carolina": ("Medicinal (Low THC)", MEDICINAL),
    "Texas": ("Medicinal (Low THC)", MEDICINAL),
    "Virginia": ("Recreational", RECREATIONAL),
    "Washington": ("Recreational", RECREATIONAL),
    "Wisconsin": ("Illegal", ILLEGAL),
}

US_STATES: List[str] = sorted(US_CANNABIS_LEGALITY)

DEFAULT_STATE = "Florida"


def lookup_legality(state: str) -> LegalityInfo:
    status, category = US_CANNABIS_LEGALITY.get(state, ("Unknown", "unknown"))
    return LegalityInfo(state=state, status=status, category=category)


def all_legality() -> List[LegalityInfo]:
    return [lookup_legality(state) for state in US_STATES]


def vocabulary() -> Dict[str, List[str]]:
    return {
        "terpenes": list(TERPENES),
        "strain_types": [t.value for t in StrainType],
        "product_types": [t.value for t in ProductType],
        "states": list(US_STATES),
    }
