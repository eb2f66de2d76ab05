import time
import uuid
from contextvars import ContextVar

from starlette.types import ASGIApp, Receive, Scope, Send

# ---------------------------------------------------------------------------
# Per-request context variable
# ---------------------------------------------------------------------------

# Read once by the ``get_request_context`` dependency, which hands the id
# to services inside an explicit ``RequestContext``.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

REQUEST_ID_HEADER = b"x-request-id"


# ---------------------------------------------------------------------------
# Middleware (pure ASGI — avoids BaseHTTPMiddleware ContextVar isolation)
# ---------------------------------------------------------------------------

class RequestContextMiddleware:
    """
    Pure ASGI middleware that tags every request with an id and adds two
    diagnostic response headers:

    - ``X-Request-ID``: echoed from the request when the caller supplied
      one, otherwise freshly generated.
    - ``X-Response-Time-Ms``: wall-clock time for the entire request.

    Unlike ``BaseHTTPMiddleware``, this does NOT spawn a child asyncio
    task for the inner application, so the ``ContextVar`` set here is
    visible to dependencies resolved while handling the request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for name, value in scope.get("headers", []):
            if name == REQUEST_ID_HEADER:
                request_id = value.decode("latin-1")
                break
        request_id = request_id or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        start = time.perf_counter()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            request_id_var.reset(token)
