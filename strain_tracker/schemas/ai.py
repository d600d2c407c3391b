"""
Pydantic schemas for generative-text helpers.
"""
from typing import List
from pydantic import BaseModel, Field


class StrainNameRequest(BaseModel):
    """
    POST /api/ai/strain-names
    """

    effects: str = Field("", max_length=5000)
    flavor: str = Field("", max_length=500)


class StrainNameResponse(BaseModel):
    suggestions: List[str]
    raw: str = Field(..., description="Unparsed reply, or the fallback message")
