"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Uniform error body returned by every failing endpoint."""

    error: str = Field(..., description="Human-readable error message.")
    code: str = Field(..., description="Stable machine-readable error code.")
    timestamp: str = Field(..., description="Server time of the failure (ISO-8601).")
