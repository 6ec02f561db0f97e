"""
Cross-origin configuration for browser callers.

All origins are allowed. Preflight requests are answered with permissive
headers and an empty body.
"""

from __future__ import annotations

from http import HTTPStatus

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

CORS_ALLOW_HEADERS = ("authorization", "x-client-info", "apikey", "content-type")
CORS_ALLOW_METHODS = ("GET", "POST", "PATCH", "DELETE", "OPTIONS")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """``CORSMiddleware`` whose preflight replies are always an empty 200.

    Starlette would answer 400 to a preflight naming a header outside
    ``allow_headers``.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=HTTPStatus.OK, headers=headers)


__all__ = [
    "CORS_ALLOW_HEADERS",
    "CORS_ALLOW_METHODS",
    "CORS_HEADERS",
    "EmptyPreflightCORSMiddleware",
]
