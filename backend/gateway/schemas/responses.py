# backend/gateway/schemas/responses.py
"""
Uniform response envelope.

Every endpoint, success or failure, returns:

    {"success": bool, "message"?: str, "data"?: ..., "error"?: str, "details"?: ...}

Fields that were never set are omitted from the JSON (routes use
response_model_exclude_unset=True); None values inside ``data`` are kept.
Error envelopes are built by the global exception handlers in main.py.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for every API response."""

    success: bool = Field(
        ...,
        description="Indicates if the request was successful",
        examples=[True],
    )
    message: str | None = Field(
        default=None,
        description="Human-readable outcome",
        examples=["Operation successful"],
    )
    data: T | None = Field(
        default=None,
        description="Operation result",
    )
    error: str | None = Field(
        default=None,
        description="Error type (e.g., 'ValidationError'), failures only",
    )
    details: Any | None = Field(
        default=None,
        description="Additional error context (optional)",
    )

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> "ApiResponse":
        fields: dict[str, Any] = {"success": True}
        if data is not None:
            fields["data"] = data
        if message is not None:
            fields["message"] = message
        return cls(**fields)

    @classmethod
    def fail(cls, error: str, message: str, details: Any = None) -> "ApiResponse":
        fields: dict[str, Any] = {"success": False, "error": error, "message": message}
        if details is not None:
            fields["details"] = details
        return cls(**fields)

    def to_content(self) -> dict[str, Any]:
        """JSON-ready dict without the fields that were never set."""
        return self.model_dump(mode="json", exclude_unset=True)
