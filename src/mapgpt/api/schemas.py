"""Pydantic models for the MapGPT API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    prompt: str = Field(..., min_length=1, description="End-user question about the institution")


class ChatResponse(BaseModel):
    response: str = Field(..., description="Assistant reply, markdown formatted")


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = Field(default=None, description="Diagnostic trace, omitted in production")


class UsageResponse(BaseModel):
    message: str
    example: ChatRequest


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
