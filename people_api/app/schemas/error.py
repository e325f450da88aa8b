"""
Pydantic schemas for error responses.

A rejected request answers ``{"errors": [...]}`` with one entry per
violated constraint; a storage or unexpected failure answers
``{"error": "..."}``.
"""

from typing import Any, List

from pydantic import BaseModel


class FieldError(BaseModel):
    """A single failed check on a request field."""

    field: str
    message: str
    location: str
    value: Any = None


class ValidationErrorResponse(BaseModel):
    errors: List[FieldError]


class ErrorResponse(BaseModel):
    error: str
