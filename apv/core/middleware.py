import time
import uuid

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from apv.config import Settings
from apv.core.logging import logger

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all incoming requests and responses with performance metrics
    """

    def __init__(self, app: ASGIApp, exclude_paths=None):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or [])

    async def dispatch(self, request: Request, call_next):
        # Reuse the ID set by CorrelationIDMiddleware when it runs first
        correlation_id = (
            getattr(request.state, "correlation_id", None)
            or request.headers.get(CORRELATION_HEADER)
            or str(uuid.uuid4())
        )
        request.state.correlation_id = correlation_id

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exception=e,
                path=request.url.path,
                method=request.method,
                duration_ms=duration_ms,
                correlation_id=correlation_id,
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        if request.url.path not in self.exclude_paths:
            logger.request_log(
                request=request,
                status_code=response.status_code,
                duration_ms=duration_ms,
                correlation_id=correlation_id,
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class CorrelationIDMiddleware:
    """
    Middleware that ensures all requests have a correlation ID
    This is implemented as a pure ASGI middleware for better performance
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = headers.get(b"x-correlation-id", b"").decode() or str(uuid.uuid4())

        if "state" not in scope:
            scope["state"] = {}
        scope["state"]["correlation_id"] = correlation_id

        async def send_with_correlation_id(message):
            if message["type"] == "http.response.start":
                correlation_header = (b"x-correlation-id", correlation_id.encode())
                headers = [
                    (key, value)
                    for key, value in message.get("headers", [])
                    if key.lower() != b"x-correlation-id"
                ]
                headers.append(correlation_header)
                message["headers"] = headers

            await send(message)

        await self.app(scope, receive, send_with_correlation_id)


def setup_middleware(app: FastAPI, settings: Settings, exclude_paths=None) -> None:
    """
    Set up middleware for the application.

    Starlette wraps the most recently added middleware outermost, so the
    correlation ID is assigned before the request is logged and before the
    session cookie is read.
    """
    if settings.session_enabled:
        app.add_middleware(
            SessionMiddleware,
            secret_key=settings.SECRET_KEY,
            session_cookie=settings.SESSION_COOKIE,
        )
    app.add_middleware(RequestLoggerMiddleware, exclude_paths=exclude_paths)
    app.add_middleware(CorrelationIDMiddleware)
