import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from blog.logging_config import request_id_var

REQUEST_ID_HEADER = "x-request-id"


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, so ContextVar changes reach the handler's task)
# ---------------------------------------------------------------------------

class RequestContextMiddleware:
    """
    Pure ASGI middleware that correlates a request with its log lines.

    - Accepts ``X-Request-ID`` from the client or generates a UUID4.
    - Publishes it through ``request_id_var`` for the logging filter.
    - Echoes it back and adds ``X-Response-Time-Ms`` to the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = None
        for name, value in scope.get("headers", []):
            if name == REQUEST_ID_HEADER.encode():
                incoming = value.decode("latin-1")
                break
        request_id = incoming or str(uuid.uuid4())

        token = request_id_var.set(request_id)
        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER.encode(), request_id.encode("latin-1")))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            request_id_var.reset(token)
