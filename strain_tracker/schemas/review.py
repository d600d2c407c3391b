"""
Pydantic schemas for strain reviews and the public popular-strain projection.

Stored documents use camelCase keys; the aliases below map them onto
snake_case attributes.
"""
from typing import Optional, List, Union
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator, ConfigDict


class StrainType(str, Enum):
    """Strain category."""

    HYBRID = "Hybrid"
    INDICA = "Indica"
    SATIVA = "Sativa"


class ProductType(str, Enum):
    """Product form factor."""

    FLOWER = "Flower"
    EDIBLE = "Edible"
    CONCENTRATE = "Concentrate"
    VAPE = "Vape"
    TINCTURE = "Tincture"
    TOPICAL = "Topical"


TERPENES = tuple(
    sorted(
        [
            "Beta-Caryophyllene",
            "Caryophyllene Oxide",
            "Eucalyptol",
            "Fenchol",
            "Humulene",
            "Limonene",
            "Linalool",
            "Myrcene",
            "Ocimene",
            "Pinene",
            "Terpineol",
            "Terpinolene",
        ]
    )
)


class ReviewInput(BaseModel):
    """
    Review submission form.

    Required-field and terpene-count rules are enforced by the record
    validator, not here, so that a failed submission reports the same
    message the form shows.
    """

    strain: str = Field("", max_length=200, description="Strain name")
    rating: int = Field(0, description="Star rating, 1-5 (0 = unset)")
    strain_type: StrainType = Field(StrainType.HYBRID, alias="type", description="Strain category")
    product_type: ProductType = Field(
        ProductType.FLOWER, alias="productType", description="Product form factor"
    )
    terpenes: List[str] = Field(default_factory=list, description="Up to 3 dominant terpenes")
    cost: Optional[Union[float, str]] = Field(None, description="Price paid; unparsable -> 0")
    potency: str = Field("", max_length=100)
    flavor: str = Field("", max_length=500)
    brand: str = Field("", max_length=200)
    location: str = Field("", max_length=200)
    effects: str = Field("", max_length=5000, description="Free-text effects notes")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("terpenes")
    @classmethod
    def validate_terpene_vocabulary(cls, v: List[str]) -> List[str]:
        unknown = [t for t in v if t not in TERPENES]
        if unknown:
            raise ValueError(f"Unknown terpenes: {', '.join(unknown)}")
        return v


class Review(BaseModel):
    """
    A private review as materialized from the owner's collection.
    """

    id: str
    strain: str = ""
    rating: int = 0
    strain_type: Optional[str] = Field(None, alias="type")
    product_type: Optional[str] = Field(None, alias="productType")
    terpenes: List[str] = Field(default_factory=list)
    cost: float = 0.0
    potency: str = ""
    flavor: str = ""
    brand: str = ""
    location: str = ""
    effects: str = ""
    timestamp: datetime
    owner_id: Optional[str] = Field(None, alias="ownerId")
    analysis: Optional[str] = None

    # Local-only; never written to the store
    analysis_loading: bool = Field(False, alias="analysisLoading")

    model_config = ConfigDict(populate_by_name=True)


class PopularStrainEntry(BaseModel):
    """
    Public projection of a highly-rated review.
    """

    id: str
    strain: str = ""
    rating: int = 0
    strain_type: Optional[str] = Field(None, alias="type")
    product_type: Optional[str] = Field(None, alias="productType")
    potency: str = ""
    brand: str = ""
    terpenes: List[str] = Field(default_factory=list)
    added_by: Optional[str] = Field(None, alias="addedBy")
    timestamp: datetime

    model_config = ConfigDict(populate_by_name=True)


class CreateReviewResponse(BaseModel):
    """Outcome of a review submission."""

    id: str = Field(..., description="Id assigned by the store")
    mirrored: bool = Field(..., description="Whether a public popular-strain entry was written")


class ShareResponse(BaseModel):
    """Share text and the clipboard outcome."""

    text: str
    copied: bool
    message: str


class AnalysisResponse(BaseModel):
    """Outcome of an effects analysis request."""

    review_id: str = Field(..., alias="reviewId")
    started: bool = Field(..., description="False when an analysis was already running")
    analysis: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class OkResponse(BaseModel):
    ok: bool = True
