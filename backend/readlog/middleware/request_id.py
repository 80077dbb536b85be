"""
Readlog Backend — Request ID Middleware
=========================================

What:  Assigns a correlation id to each request and echoes it in X-Request-ID.
Why:   Error envelopes carry the id, so a client report can be matched to the
       server log lines of the same request.
How:   Uses the client's X-Request-ID when present, otherwise the first eight
       characters of a fresh UUID4. Stored in a ContextVar (coroutine-local)
       and on request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
