"""
Virtual Fridge Backend — Shared Schema Building Blocks
========================================================

What:  Base model and response shapes used by every schema module.
How:   ApiModel renders snake_case attributes as camelCase JSON, which is
       the contract the Android client was built against, and reads
       straight from ORM objects (from_attributes).
"""

from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    Base for every request/response model.

    - Python side: snake_case attributes (percent_left)
    - Wire side:   camelCase keys (percentLeft)
    - Both spellings are accepted on input
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class MessageResponse(ApiModel):
    """Envelope for endpoints that only report an outcome."""
    message: str = Field(description="Human-readable outcome")


class ErrorResponse(BaseModel):
    """
    Error body produced by the global exception handlers.

    Example:
        {
            "error": "not_found",
            "message": "FoodItem with ID 0b6c... not found.",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error label")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for container orchestration and monitoring."""
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    gemini: str = Field(description="Gemini API status: available, unavailable, circuit_open")
    firebase: str = Field(description="Push delivery: initialized, disabled")
