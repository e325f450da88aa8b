"""Pydantic schema for the health endpoint."""

from pydantic import BaseModel, Field


class HealthRead(BaseModel):
    status: str = Field("ok", examples=["ok"])
    version: str
    database: str = Field(..., examples=["ok", "unavailable"])
