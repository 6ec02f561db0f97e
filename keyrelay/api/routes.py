"""
FastAPI routes for the key relay.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from keyrelay.api.cors import CORS_HEADERS
from keyrelay.clients.secret_store import StoredSecret
from keyrelay.core.errors import InvalidRequest, SecretMissing, UnknownService
from keyrelay.dependencies import (
    get_current_user_id,
    get_relay_handler,
    get_secret_store,
    get_service_registry,
)
from keyrelay.schemas import (
    ApiKeyCreate,
    ApiKeySummary,
    ApiKeyUpdate,
    ErrorResponse,
    RelayRequest,
    ServiceList,
)
from keyrelay.services import RelayResult, mask_secret

router = APIRouter()
logger = logging.getLogger(__name__)

AUTH_ERRORS = {HTTPStatus.UNAUTHORIZED.value: {"model": ErrorResponse}}
KEY_ERRORS = {
    **AUTH_ERRORS,
    HTTPStatus.BAD_REQUEST.value: {"model": ErrorResponse},
    HTTPStatus.NOT_FOUND.value: {"model": ErrorResponse},
}
RELAY_ERRORS = {
    **KEY_ERRORS,
    HTTPStatus.INTERNAL_SERVER_ERROR.value: {"model": ErrorResponse},
}


def _summarize(secret: StoredSecret) -> ApiKeySummary:
    return ApiKeySummary(
        id=secret.id,
        service=secret.service,
        masked_key=mask_secret(secret.value),
        created_at=secret.created_at,
        updated_at=secret.updated_at,
    )


async def _parse_relay_request(request: Request) -> RelayRequest:
    try:
        raw = await request.json()
    except ValueError as exc:
        raise InvalidRequest("Request body must be a JSON object") from exc
    try:
        return RelayRequest.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = " ".join(filter(None, [location, first["msg"]]))
        raise InvalidRequest(f"Invalid request body: {detail}") from exc


def _render(result: RelayResult) -> Response:
    if result.is_json:
        return JSONResponse(content=result.body, status_code=result.status_code)
    return Response(
        content=result.content,
        status_code=result.status_code,
        media_type=result.media_type,
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/services", response_model=ServiceList)
async def list_services(
    registry: Annotated[Any, Depends(get_service_registry)],
) -> ServiceList:
    """List the provider keys accepted by the relay."""
    return ServiceList(services=registry.keys())


@router.options("/relay")
async def relay_preflight() -> Response:
    return Response(status_code=HTTPStatus.OK, headers=CORS_HEADERS)


@router.post("/relay", responses=RELAY_ERRORS)
async def relay_call(
    request: Request,
    handler: Annotated[Any, Depends(get_relay_handler)],
    authorization: Annotated[str | None, Header()] = None,
) -> Response:
    """
    Forward a provider call using the caller's stored key.

    The provider's status code and body are returned as-is, including provider
    errors such as 401 or 429.
    """
    user_id = await handler.authenticate(authorization)
    relay_request = await _parse_relay_request(request)
    result = await handler.relay(
        user_id=user_id,
        service=relay_request.service,
        endpoint=relay_request.endpoint,
        payload=relay_request.payload,
    )
    return _render(result)


@router.get("/keys", response_model=list[ApiKeySummary], responses=AUTH_ERRORS)
async def list_keys(
    user_id: Annotated[str, Depends(get_current_user_id)],
    store: Annotated[Any, Depends(get_secret_store)],
) -> list[ApiKeySummary]:
    """Return the caller's stored keys with masked values."""
    return [_summarize(secret) for secret in store.list_secrets(user_id=user_id)]


@router.post(
    "/keys",
    response_model=ApiKeySummary,
    status_code=HTTPStatus.CREATED,
    responses=KEY_ERRORS,
)
async def save_key(
    payload: ApiKeyCreate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    store: Annotated[Any, Depends(get_secret_store)],
    registry: Annotated[Any, Depends(get_service_registry)],
) -> ApiKeySummary:
    """Store a key for a service, replacing any key already saved for it."""
    if payload.service not in registry:
        raise UnknownService()
    stored = store.upsert_secret(
        user_id=user_id, service=payload.service, value=payload.api_key
    )
    logger.info("Saved %s key %s for user %s", stored.service, stored.id, user_id)
    return _summarize(stored)


@router.patch("/keys/{key_id}", response_model=ApiKeySummary, responses=KEY_ERRORS)
async def update_key(
    key_id: str,
    payload: ApiKeyUpdate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    store: Annotated[Any, Depends(get_secret_store)],
) -> ApiKeySummary:
    stored = store.update_secret(user_id=user_id, secret_id=key_id, value=payload.api_key)
    if stored is None:
        raise SecretMissing()
    logger.info("Updated %s key %s for user %s", stored.service, stored.id, user_id)
    return _summarize(stored)


@router.delete(
    "/keys/{key_id}", status_code=HTTPStatus.NO_CONTENT, responses=KEY_ERRORS
)
async def delete_key(
    key_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    store: Annotated[Any, Depends(get_secret_store)],
) -> Response:
    if not store.delete_secret(user_id=user_id, secret_id=key_id):
        raise SecretMissing()
    logger.info("Deleted key %s for user %s", key_id, user_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


__all__ = ["router"]
