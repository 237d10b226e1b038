"""Pydantic models for the account connect endpoints."""

from pydantic import BaseModel, Field


class AuthUrlResponse(BaseModel):
    """Authorization URL for programmatic callers.

    Attributes:
        authUrl: Upstox authorization dialog URL (state included)
    """

    authUrl: str = Field(..., description="Upstox authorization dialog URL")


class AuthErrorResponse(BaseModel):
    """Error returned directly by the login endpoint.

    Attributes:
        error: Machine-readable reason code
        message: Human-readable error message
    """

    error: str = Field(..., description="Reason code, e.g. config_missing")
    message: str = Field(default="", description="Human-readable error message")
