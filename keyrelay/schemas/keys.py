"""Schemas for managing stored provider keys."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ApiKeyCreate(BaseModel):
    service: str = Field(..., description="Registry key the secret belongs to.")
    api_key: str = Field(..., min_length=1, description="Provider API key or token.")


class ApiKeyUpdate(BaseModel):
    api_key: str = Field(..., min_length=1)


class ApiKeySummary(BaseModel):
    """A stored key as shown to its owner; the raw value is never returned."""

    id: str
    service: str
    masked_key: str
    created_at: datetime
    updated_at: datetime


class ServiceList(BaseModel):
    services: list[str]


__all__ = ["ApiKeyCreate", "ApiKeySummary", "ApiKeyUpdate", "ServiceList"]
