"""
API schemas package.
"""

# Common schemas
from .common import ApiResponse, ErrorResponse

# Session schemas
from .session import (
    PatientIntakeRequest,
    ProtocolSelectRequest,
    ResetRequest,
    ViewRequest,
    SessionStateResponse,
    ToggleResponse,
    RecommendationResponse,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "PatientIntakeRequest",
    "ProtocolSelectRequest",
    "ResetRequest",
    "ViewRequest",
    "SessionStateResponse",
    "ToggleResponse",
    "RecommendationResponse",
]
