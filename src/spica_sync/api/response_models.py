"""Pydantic models for the Spica instance responses the engine relies on.

Only the fields the engine reads are declared; everything else is allowed
through untouched so documents can be forwarded verbatim to the target.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned by the instance API.

    Example:
        {"statusCode": 404, "message": "Not Found", "error": "Not Found"}
    """

    statusCode: int | None = None
    message: str | list[str] | None = None
    error: str | None = None

    model_config = {"extra": "allow"}

    def get_full_message(self) -> str:
        """Combine message and error into a single readable string."""
        message = self.message
        if isinstance(message, list):
            message = "; ".join(message)
        if message and self.error and self.error != message:
            return f"{message} ({self.error})"
        return message or self.error or "Unknown error"


class FunctionSummary(BaseModel):
    """Function document as listed by GET /function (discovery fields only)."""

    id: str = Field(..., alias="_id")
    name: str

    model_config = {"extra": "allow", "populate_by_name": True}


class BucketSummary(BaseModel):
    """Bucket schema as listed by GET /bucket (discovery fields only)."""

    id: str = Field(..., alias="_id")
    title: str
    primary: str | None = Field(None, description="Property shown as a record's label")

    model_config = {"extra": "allow", "populate_by_name": True}


class FunctionIndexResponse(BaseModel):
    """Response of GET /function/{id}/index."""

    index: str

    model_config = {"extra": "allow"}


class DependencyEntry(BaseModel):
    """One installed package of a function."""

    name: str
    version: str = ""
    types: Any = None

    model_config = {"extra": "allow"}
