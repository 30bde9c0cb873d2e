"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.application.results import ActionResult


class ErrorDetail(BaseModel):
    """Machine-readable error attached to a failed action."""
    message: str = Field(..., description="User-facing error message", examples=["Not authenticated"])
    code: str = Field(..., description="Error code from the service taxonomy", examples=["UNAUTHORIZED"])


class ActionResponse(BaseModel):
    """Standard result envelope for mutations."""
    success: bool = Field(..., description="Whether the action succeeded")
    message: Optional[str] = Field(None, description="Optional success message")
    error: Optional[ErrorDetail] = Field(None, description="Error details when success is false")

    @classmethod
    def from_result(cls, result: ActionResult) -> ActionResponse:
        error = None
        if result.error is not None:
            error = ErrorDetail(message=result.error.message, code=result.error.code)
        return cls(success=result.success, message=result.message, error=error)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["healthy"])


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["gatehouse-backend"])
    version: str = Field(..., description="API version", examples=["0.1.0"])


class MessageResponse(BaseModel):
    success: bool = Field(True)
    data: dict[str, Any] = Field(default_factory=dict, description="Payload")
