"""Request correlation.

Each request gets an id, taken from ``X-Request-ID`` when the caller or a
proxy supplies one. The id is echoed in the response, kept on
``request.state`` and bound for logging, so every record emitted while the
route runs carries it.
"""

import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from storyforge.app.core.logging import bind_request_id, get_log_context, get_logger, reset_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign and echo a request id, and log one line per request."""

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header_name = header_name

    def _request_id_for(self, request: Request) -> str:
        supplied = request.headers.get(self.header_name, "").strip()
        if supplied and len(supplied) <= MAX_REQUEST_ID_LENGTH:
            return supplied
        return str(uuid.uuid4())

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = self._request_id_for(request)
        request.state.request_id = request_id

        token = bind_request_id(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers[self.header_name] = request_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra=get_log_context(
                request_id=request_id,
                path=request.url.path,
                method=request.method,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            ),
        )
        return response


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")
