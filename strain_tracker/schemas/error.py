"""
Standard error response schemas.
All API errors follow this unified format.
"""
from typing import Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes used throughout the API."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"  # 422
    NOT_FOUND = "NOT_FOUND"  # 404
    CONFLICT = "CONFLICT"  # 409
    UNAUTHORIZED = "UNAUTHORIZED"  # 401
    WEAK_PASSWORD = "WEAK_PASSWORD"  # 400
    EMAIL_IN_USE = "EMAIL_IN_USE"  # 409
    SIGN_IN_FAILED = "SIGN_IN_FAILED"  # 401
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"  # 503
    CONFIGURATION = "CONFIGURATION"  # 503
    INTERNAL = "INTERNAL"  # 500


class ErrorDetail(BaseModel):
    """
    Error detail object.
    Contains the error code, human-readable message, and optional additional details.
    """

    code: ErrorCode = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")

    model_config = ConfigDict(use_enum_values=True)


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Example:
    {
        "requestId": "abc-123-def",
        "error": {
            "code": "INVALID_ARGUMENT",
            "message": "Strain Name and Rating are required.",
            "details": {"reason": "missing_strain"}
        }
    }
    """

    request_id: str = Field(..., alias="requestId", description="Request ID for tracing")
    error: ErrorDetail = Field(..., description="Error details")

    model_config = ConfigDict(populate_by_name=True)


ERROR_CODE_TO_HTTP_STATUS = {
    ErrorCode.INVALID_ARGUMENT: 422,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.WEAK_PASSWORD: 400,
    ErrorCode.EMAIL_IN_USE: 409,
    ErrorCode.SIGN_IN_FAILED: 401,
    ErrorCode.STORE_UNAVAILABLE: 503,
    ErrorCode.CONFIGURATION: 503,
    ErrorCode.INTERNAL: 500,
}
