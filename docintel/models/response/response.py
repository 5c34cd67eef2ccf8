from typing import Optional

from pydantic import BaseModel, Field


class HealthCheckResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Service status
        version: Application version
        service: Service name
    """

    status: str = Field(default="healthy", description="Service health status", examples=["healthy", "degraded"])
    version: str = Field(..., description="Application version", examples=["0.1.0"])
    service: str = Field(..., description="Service name", examples=["docintel"])


class RootResponse(BaseModel):
    """Root endpoint response payload."""

    message: str = Field(..., description="Service status message")
    version: str = Field(..., description="Running application version")
    docs: str = Field(..., description="Path to the interactive API docs")
    health: str = Field(..., description="Path to the health check endpoint")


class ErrorResponse(BaseModel):
    """Error response model.

    Attributes:
        error: Error type
        message: Human-readable error message
        detail: Optional detailed error information
    """

    error: str = Field(..., description="Error type", examples=["NotFoundError", "ValidationError"])
    message: str = Field(..., description="Human-readable error message", examples=["Schema not found: 3f2b..."])
    detail: Optional[str] = Field(default=None, description="Additional error detail")
