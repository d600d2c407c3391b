"""
Pydantic schemas package.
Exports all request/response models.
"""
from strain_tracker.schemas.review import (
    StrainType,
    ProductType,
    TERPENES,
    ReviewInput,
    Review,
    PopularStrainEntry,
    CreateReviewResponse,
    ShareResponse,
    AnalysisResponse,
    OkResponse,
)
from strain_tracker.schemas.auth import (
    SignUpRequest,
    SignInRequest,
    CustomTokenRequest,
    SessionResponse,
    UserProfile,
    MeResponse,
)
from strain_tracker.schemas.views import (
    Screen,
    FilterCriteria,
    CategoryBucket,
    CategoryBreakdown,
    DerivedViews,
    LegalityInfo,
    DashboardResponse,
    ReviewListResponse,
    VocabularyResponse,
)
from strain_tracker.schemas.ai import StrainNameRequest, StrainNameResponse
from strain_tracker.schemas.error import ErrorCode, ErrorDetail, ErrorResponse, ERROR_CODE_TO_HTTP_STATUS

__all__ = [
    # Review
    "StrainType",
    "ProductType",
    "TERPENES",
    "ReviewInput",
    "Review",
    "PopularStrainEntry",
    "CreateReviewResponse",
    "ShareResponse",
    "AnalysisResponse",
    "OkResponse",
    # Auth
    "SignUpRequest",
    "SignInRequest",
    "CustomTokenRequest",
    "SessionResponse",
    "UserProfile",
    "MeResponse",
    # Views
    "Screen",
    "FilterCriteria",
    "CategoryBucket",
    "CategoryBreakdown",
    "DerivedViews",
    "LegalityInfo",
    "DashboardResponse",
    "ReviewListResponse",
    "VocabularyResponse",
    # AI
    "StrainNameRequest",
    "StrainNameResponse",
    # Error
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "ERROR_CODE_TO_HTTP_STATUS",
]
