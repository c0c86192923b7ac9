"""Pure ASGI middleware for the casino site API.

Provides request logging, error handling, security headers and a request
body size limit for the CMS webhook.
"""

import json
import logging
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from casino_site.config import get_settings

from .errors import ErrorCode, error_response

logger = logging.getLogger(__name__)


def _get_access_logger() -> logging.Logger:
    """Return a logger configured for structured JSON output."""
    log = logging.getLogger("casino_site.access")
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(handler)
        log.setLevel(logging.INFO)
        log.propagate = False
    return log


_access_logger = _get_access_logger()

_SITEMAP_CACHE_HEADER = b"x-sitemap-cache"


async def _send_json(send: Send, status: int, payload: dict) -> None:
    body = json.dumps(payload).encode()
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode()),
            ],
        }
    )
    await send({"type": "http.response.body", "body": body})


class RequestLoggingMiddleware:
    """Pure ASGI middleware for structured request logging.

    Injects X-Request-ID and emits one JSON access line per request. Sitemap
    responses add a ``sitemap_cache`` field (HIT, MISS or STALE) taken from
    the ``X-Sitemap-Cache`` response header. 5xx responses and requests that
    end without a response are logged at ERROR.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = (
            headers.get(b"x-request-id", b"").decode() or str(uuid.uuid4())[:8]
        )
        start_time = time.monotonic()
        status_code: int | None = None
        sitemap_cache: str | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, sitemap_cache
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                response_headers = list(message.get("headers", []))
                for name, value in response_headers:
                    if name.lower() == _SITEMAP_CACHE_HEADER:
                        sitemap_cache = value.decode()
                message["headers"] = response_headers + [
                    (b"x-request-id", request_id.encode())
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.monotonic() - start_time) * 1000
            entry = {
                "severity": "INFO",
                "request_id": request_id,
                "method": scope.get("method", "?"),
                "path": scope.get("path", "/"),
                "status": status_code,
                "duration_ms": round(duration_ms, 1),
            }
            if sitemap_cache is not None:
                entry["sitemap_cache"] = sitemap_cache
            level = logging.INFO
            if status_code is None or status_code >= 500:
                level = logging.ERROR
                entry["severity"] = "ERROR"
            _access_logger.log(level, json.dumps(entry))


class ErrorHandlingMiddleware:
    """Catch unhandled exceptions and return a structured 500 JSON body.

    Prevents stack traces from leaking to clients.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception(
                "Unhandled exception on %s %s",
                scope.get("method", "?"),
                scope.get("path", "/"),
            )
            if not response_started:
                await _send_json(
                    send,
                    500,
                    error_response(ErrorCode.INTERNAL_ERROR, "An unexpected error occurred."),
                )


class SecurityHeadersMiddleware:
    """Add security headers to every HTTP response.

    The webhook and health endpoints are also marked ``noindex``.
    """

    HEADERS = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"referrer-policy", b"strict-origin-when-cross-origin"),
        (b"strict-transport-security", b"max-age=63072000; includeSubDomains"),
        (b"content-security-policy", b"default-src 'self'"),
    ]
    NOINDEX_PREFIXES = ("/api/", "/health")

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra = list(self.HEADERS)
        if scope.get("path", "/").startswith(self.NOINDEX_PREFIXES):
            extra.append((b"x-robots-tag", b"noindex"))

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = list(message.get("headers", [])) + extra
            await send(message)

        await self.app(scope, receive, send_wrapper)


class RequestBodyLimitMiddleware:
    """Reject request bodies larger than ``MAX_REQUEST_BODY_SIZE`` with 413.

    Checks ``Content-Length`` up front, then buffers the streamed body so
    chunked uploads without a length header are caught too. The buffered
    body is replayed to the app as a single message.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self.max_size = get_settings().MAX_REQUEST_BODY_SIZE

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        content_length = headers.get(b"content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                declared = 0
            if declared > self.max_size:
                await self._reject(send)
                return

        body = b""
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before the body finished
                await self.app(scope, _replay(message, receive), send)
                return
            body += message.get("body", b"")
            if len(body) > self.max_size:
                await self._reject(send)
                return
            more_body = message.get("more_body", False)

        request_message = {"type": "http.request", "body": body, "more_body": False}
        await self.app(scope, _replay(request_message, receive), send)

    async def _reject(self, send: Send) -> None:
        logger.warning("Rejected request body larger than %d bytes", self.max_size)
        await _send_json(
            send,
            413,
            error_response(ErrorCode.PAYLOAD_TOO_LARGE, "Request body too large."),
        )


def _replay(first: Message, receive: Receive) -> Receive:
    """Return a receive callable that yields ``first`` once, then delegates."""
    pending = [first]

    async def replay_receive() -> Message:
        if pending:
            return pending.pop()
        return await receive()

    return replay_receive
