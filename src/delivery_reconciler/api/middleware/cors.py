"""Permissive cross-origin middleware.

Every response carries wildcard CORS headers, and any OPTIONS request is
answered with an empty 204 before routing. Starlette's CORSMiddleware only
short-circuits requests that carry Origin and Access-Control-Request-Method
headers, so a bare OPTIONS would otherwise fall through to a 405.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}


async def permissive_cors(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response
