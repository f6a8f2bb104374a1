# middleware.py
import time
import uuid

import structlog
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from config.settings import MAX_UPLOAD_SIZE

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info("request_complete", method=request.method, path=request.url.path,
                    status=response.status_code, duration_ms=duration_ms)
        response.headers["X-Request-ID"] = request_id
        return response


class MaxUploadSizeMiddleware:
    """Reject request bodies above the configured limit.

    A declared ``Content-Length`` is checked up front. Bodies without one
    (chunked uploads) are counted as they are read, and the application's
    response is replaced by the 413 once the running total passes the limit.
    """

    def __init__(self, app: ASGIApp, max_size: int = MAX_UPLOAD_SIZE):
        self.app = app
        self.max_size = max_size

    def _too_large(self) -> JSONResponse:
        return JSONResponse(
            status_code=413,
            content={'success': False, 'message': f'Request body exceeds the {self.max_size} byte limit.'},
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning("request_too_large", path=scope.get("path"), content_length=int(content_length),
                           max_size=self.max_size)
            await self._too_large()(scope, receive, send)
            return

        received = 0
        exceeded = False
        response_started = False

        async def receive_wrapper() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_size:
                    exceeded = True
                    raise HTTPException(status_code=413)
            return message

        async def send_wrapper(message: Message):
            nonlocal response_started
            # whatever the app answers to the aborted read is replaced below
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive_wrapper, send_wrapper)
        except Exception:
            if not exceeded or response_started:
                raise

        if exceeded and not response_started:
            logger.warning("request_too_large", path=scope.get("path"), received=received, max_size=self.max_size)
            await self._too_large()(scope, receive, send)
