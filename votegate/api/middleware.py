from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("votegate.api")

REQUEST_ID_HEADER = "X-Request-ID"


def record_decision(request: Request, attribute: str, granted: bool) -> None:
    """Remember a decision outcome so the access log line can carry it."""

    request.state.decision_attribute = attribute
    request.state.decision_granted = granted


class DecisionLogMiddleware(BaseHTTPMiddleware):
    """One structured log line per request, tagged with its decision.

    Assigns the request id (a short client-supplied X-Request-ID is kept)
    and echoes it on the response. The decided attribute and outcome are
    taken from request.state when the endpoint recorded them; subjects and
    request bodies are never logged.
    """

    def __init__(self, app, *, max_request_id_len: int = 128):
        super().__init__(app)
        self._max_len = max_request_id_len

    async def dispatch(self, request: Request, call_next: Callable):
        rid = request.headers.get(REQUEST_ID_HEADER)
        if not rid or len(rid) > self._max_len:
            rid = uuid4().hex
        request.state.request_id = rid

        start = time.monotonic()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            state = request.state
            log.info(
                "api_request",
                extra={
                    "request_id": rid,
                    "actor_identity": getattr(state, "actor_identity", None),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": getattr(response, "status_code", None),
                    "attribute": getattr(state, "decision_attribute", None),
                    "granted": getattr(state, "decision_granted", None),
                    "duration_ms": int((time.monotonic() - start) * 1000),
                },
            )
