import uuid
import contextvars
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Scope, Receive, Send

trace_id_var = contextvars.ContextVar("trace_id", default=None)


class TraceMiddleware:
    """Binds a trace id to the request context for log records.

    Requests and responses pass through untouched.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        trace_id = Headers(scope=scope).get("x-trace-id") or str(uuid.uuid4())
        token = trace_id_var.set(trace_id)
        try:
            await self.app(scope, receive, send)
        finally:
            trace_id_var.reset(token)
