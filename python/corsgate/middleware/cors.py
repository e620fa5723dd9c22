"""Pure ASGI CORS middleware.

- Headers are computed up front but only written when the response starts
  (the http.response.start message), so downstream handlers and inner
  middleware still run first. They are applied exactly once per request.
- OPTIONS requests are preflights: answered 200 directly, the wrapped app
  is never called.
- Requests without an Origin header on a non-wildcard policy are same-origin
  or non-browser requests: no CORS headers are sent.
- Malformed or prohibited origins get a terminal 400 text/plain response
  without any CORS headers.
- Not built on BaseHTTPMiddleware, which buffers streaming responses.
"""

from collections.abc import Callable, Mapping
from typing import Any

from starlette.applications import Starlette
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from corsgate.cors.options import CORSOptions, prepare_options
from corsgate.cors.policy import VARY, CORSPolicy
from corsgate.errors import CORSError
from corsgate.logging import clear_request_context, get_logger, set_request_context

logger = get_logger(__name__)

RejectionObserver = Callable[[CORSError, Scope], None]


def log_rejection(error: CORSError, scope: Scope) -> None:
    """Default observer: log the rejected request."""
    logger.warning(
        "cors_request_rejected",
        code=error.code.value,
        origin=error.origin,
        reason=error.message,
        path=scope.get("path"),
        method=scope.get("method"),
    )


def apply_headers(message: Message, headers: Mapping[str, str]) -> None:
    """Set CORS headers on an http.response.start message.

    Existing headers with the same name are replaced, except Vary, which is
    extended so downstream values (e.g. Accept-Encoding) survive.
    """
    message.setdefault("headers", [])
    response_headers = MutableHeaders(scope=message)
    for name, value in headers.items():
        if name == VARY:
            existing = {v.strip().lower() for v in response_headers.get(VARY, "").split(",")}
            if value.lower() not in existing:
                response_headers.add_vary_header(value)
        else:
            response_headers[name] = value


def send_before_flush(send: Send, headers: Mapping[str, str]) -> Send:
    """Wrap send so headers are written right before the response starts."""
    applied = False

    async def send_with_cors(message: Message) -> None:
        nonlocal applied
        if message["type"] == "http.response.start" and not applied:
            applied = True
            apply_headers(message, headers)
        await send(message)

    return send_with_cors


class CORSMiddleware:
    """Pure ASGI middleware computing CORS headers for every HTTP request.

    Args:
        app: The ASGI application.
        options: CORS options (defaults applied to unset fields).
        observer: Called with the error and scope for every rejected
            request. Defaults to log_rejection.
    """

    def __init__(
        self,
        app: ASGIApp,
        options: CORSOptions | Mapping[str, Any] | None = None,
        observer: RejectionObserver | None = None,
    ):
        self.app = app
        self.policy = CORSPolicy(options)
        self.observer = observer or log_rejection

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        set_request_context(
            path=scope.get("path"),
            method=scope["method"],
            origin=headers.get("origin"),
        )
        try:
            await self.handle(scope, receive, send, headers)
        finally:
            clear_request_context()

    async def handle(self, scope: Scope, receive: Receive, send: Send, headers: Headers) -> None:
        try:
            decision = self.policy.evaluate(scope["method"], headers)
        except CORSError as e:
            self.observer(e, scope)
            response = PlainTextResponse(e.message, status_code=e.status_code)
            await response(scope, receive, send)
            return

        if decision.preflight:
            # Preflight: respond immediately, the route never runs
            response = Response(status_code=200)
            await response(scope, receive, send_before_flush(send, decision.headers))
            return

        if decision.skip:
            await self.app(scope, receive, send)
            return

        await self.app(scope, receive, send_before_flush(send, decision.headers))


def add_cors_middleware(
    app: Starlette,
    options: CORSOptions | Mapping[str, Any] | None = None,
    observer: RejectionObserver | None = None,
) -> None:
    """Add the CORS middleware to a Starlette or FastAPI app.

    Args:
        app: The application.
        options: CORS options; defaults apply when None.
        observer: Optional observer for rejected requests.
    """
    effective = prepare_options(options)
    app.add_middleware(CORSMiddleware, options=effective, observer=observer)
    logger.info(
        "cors_middleware_enabled",
        scheme=effective.scheme,
        allow_domain=list(effective.allow_domain),
        allow_subdomain=effective.allow_subdomain,
        methods=list(effective.methods),
        max_age_s=effective.max_age_seconds,
        allow_credentials=effective.allow_credentials,
    )
