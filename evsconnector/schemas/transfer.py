"""Pydantic schemas for the transfer endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ProgressEventSchema(BaseModel):
    percent: int
    status: str


class TransferResponse(BaseModel):
    outputs: dict[str, Any]
    progress: list[ProgressEventSchema] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
    outputs: dict[str, Any] = Field(default_factory=dict)
