"""Schemas for the relay endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RelayRequest(BaseModel):
    """Body accepted by ``POST /api/relay``."""

    service: str = Field(..., description="Registry key of the target provider.")
    endpoint: str = Field(
        "",
        description="Provider path appended to the service base URL.",
    )
    payload: Any = Field(
        None, description="JSON document forwarded unchanged as the request body."
    )


class ErrorResponse(BaseModel):
    error: str


__all__ = ["ErrorResponse", "RelayRequest"]
