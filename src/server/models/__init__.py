"""Pydantic request and response models."""

from src.server.models.auth import AuthErrorResponse, AuthUrlResponse
from src.server.models.common import ErrorResponse, HealthResponse

__all__ = [
    # Common models
    "HealthResponse",
    "ErrorResponse",
    # Auth models
    "AuthUrlResponse",
    "AuthErrorResponse",
]
