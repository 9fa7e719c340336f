import asyncio
import httpx
import time
import logging
from starlette.types import Scope, Receive, Send
from starlette.datastructures import Headers
from starlette.concurrency import run_in_threadpool
from starlette.responses import PlainTextResponse
from typing import Optional
from urllib.parse import quote
from gateway.core.metrics import (
    REQUEST_COUNT,
    REQUEST_DURATION,
    ACTIVE_REQUESTS,
    AUTH_REJECTIONS,
    BACKEND_ERRORS,
)
from .auth_guard import AuthGuard, AuthDecision
from .errors import GatewayError, AuthRejected, RouteNotFound, ConfigError
from .forwarder import RequestForwarder, collect_params
from .response_relay import relay, error_response
from .route_matcher import match_route
from .route_table import RouteTableStore

logger = logging.getLogger(__name__)

UNMATCHED = "unmatched"


class GatewayRouter:
    def __init__(
        self,
        store: RouteTableStore,
        guard: AuthGuard,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        forwarder: Optional[RequestForwarder] = None,
    ):
        self.store = store
        self.guard = guard
        self.client = client or httpx.AsyncClient()
        self.forwarder = forwarder or RequestForwarder(self.client, timeout=timeout)

        self.cleanup_callbacks: list[callable] = []
        self.add_cleanup_callback(self.client.aclose)

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            await PlainTextResponse("Unsupported", status_code=400)(scope, receive, send)
            return

        await self._handle_http(scope, receive, send)

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send):
        path = scope["path"]
        method = scope["method"]
        route_label = UNMATCHED
        logger.info(f"Incoming request: {method} {path}")

        try:
            routes = await run_in_threadpool(self.store.current)

            route = match_route(routes, method, path)
            if route is None:
                raise RouteNotFound()
            route_label = route.path

            decision = self.guard.authenticate(route, scope.get("headers", []))
            if decision is not AuthDecision.FORWARD:
                AUTH_REJECTIONS.labels(reason=decision.value).inc()
                logger.warning(f"Auth rejected ({decision.value}) for {method} {path}")
                raise AuthRejected()

            body = await self._read_body(receive)
            content_type = Headers(scope=scope).get("content-type", "")
            params = collect_params(scope.get("query_string", b""), body, content_type)

            result = await self._forward(route, method, self._raw_path(scope),
                                         list(scope.get("headers", [])), params)
            response = relay(result)
        except ConfigError as e:
            logger.error(f"Route configuration failure: {e}")
            response = error_response(e.message, e.status_code)
        except GatewayError as e:
            logger.warning(f"{method} {path} -> {e.status_code} {e.message}")
            response = error_response(e.message, e.status_code)

        REQUEST_COUNT.labels(method=method, route=route_label,
                             status=str(response.status_code)).inc()
        await response(scope, receive, send)

    async def _forward(self, route, method, path, headers, params):
        ACTIVE_REQUESTS.inc()
        start = time.time()
        try:
            result = await self.forwarder.forward(route, method, path, headers, params)
        except GatewayError as e:
            BACKEND_ERRORS.labels(kind=type(e).__name__).inc()
            raise
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_DURATION.labels(route=route.path).observe(time.time() - start)

        if result is not None:
            logger.info(f"Backend responded for {method} {path} ({result.status_code})")
        return result

    def _raw_path(self, scope: Scope) -> str:
        # matching uses the decoded path, the backend gets the path as sent
        raw_path = scope.get("raw_path")
        if raw_path:
            return raw_path.decode("latin-1")
        return quote(scope["path"], safe="/:@!$&'()*+,;=~")

    async def _read_body(self, receive: Receive) -> bytes:
        body = b""
        more_body = True
        while more_body:
            message = await receive()
            body += message.get("body", b"")
            more_body = message.get("more_body", False)
        return body

    def add_cleanup_callback(self, cb: callable) -> None:
        self.cleanup_callbacks.append(cb)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                for cb in self.cleanup_callbacks:
                    result = cb()
                    if asyncio.iscoroutine(result): await result
                logger.info("[gateway] Shutdown complete. All resources closed.")
                await send({"type": "lifespan.shutdown.complete"})
                return
