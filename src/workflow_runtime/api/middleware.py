"""
API middleware
"""
import logging
import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# booth clients poll these; only logged at debug level
QUIET_PATHS = frozenset({"/api/v1/monitoring/health"})

SESSION_PATH = re.compile(r"^/api/v1/sessions/(?P<session_id>[^/]+)")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with a request id, the session it drives and its duration

    A request id sent by the booth client is reused so its logs and the
    runtime's logs can be joined.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        session_id = self._session_id(request.url.path)
        context = f"[request_id={request_id}]"
        if session_id:
            context += f" [session={session_id}]"

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        elif request.url.path in QUIET_PATHS:
            level = logging.DEBUG
        else:
            level = logging.INFO

        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {elapsed * 1000:.1f}ms {context}"
        )
        return response

    @staticmethod
    def _session_id(path: str) -> Optional[str]:
        match = SESSION_PATH.match(path)
        return match.group("session_id") if match else None
