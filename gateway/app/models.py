"""
Data Models Module

Pydantic models for the responses the gateway produces itself. Proxied
responses are relayed byte-for-byte and have no model.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Session Models
# ============================================================================

class SessionStatus(BaseModel):
    """Result of the session introspection endpoint."""
    valid: bool = Field(..., description="Whether a present, unexpired credential was found")
    reason: Optional[str] = Field(None, description="no_token, expired or error")


# ============================================================================
# Health Check Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


# ============================================================================
# Error Models
# ============================================================================

class ProxyErrorResponse(BaseModel):
    """Client-safe body returned when the upstream cannot be reached."""
    message: str = Field(..., description="Human-readable error message")


class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
