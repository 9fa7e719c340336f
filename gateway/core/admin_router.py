import logging
from starlette.types import Scope, Receive, Send
from starlette.concurrency import run_in_threadpool
from starlette.responses import PlainTextResponse, JSONResponse, Response
from gateway.core.metrics import render_prometheus_metrics
from gateway.core.gateway_router import GatewayRouter
from gateway.core.errors import ConfigError

logger = logging.getLogger(__name__)


class AdminRouter:
    def __init__(self, router: GatewayRouter) -> None:
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "")
        if path == "/__health":
            await self.health(scope, receive, send)
        elif path == "/__routes":
            await self.routes(scope, receive, send)
        elif path == "/__metrics":
            await self.metrics(scope, receive, send)
        elif path == "/__reload" and scope.get("method", "") == "POST":
            await self.reload_config(scope, receive, send)
        else:
            await PlainTextResponse("Not Found", status_code=404)(scope, receive, send)

    async def health(self, scope: Scope, receive: Receive, send: Send) -> None:
        await PlainTextResponse("OK")(scope, receive, send)

    async def routes(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            routes = await run_in_threadpool(self.router.store.current)
        except ConfigError as e:
            logger.error(f"Cannot list routes: {e}")
            return await JSONResponse({"error": e.message},
                                      status_code=e.status_code)(scope, receive, send)
        await JSONResponse([r.as_dict() for r in routes])(scope, receive, send)

    async def metrics(self, scope: Scope, receive: Receive, send: Send) -> None:
        data, content_type = render_prometheus_metrics()
        await Response(content=data, media_type=content_type)(scope, receive, send)

    async def reload_config(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            routes = await self.router.store.reload()
        except ConfigError as e:
            logger.error(f"Reload failed: {e}")
            return await JSONResponse({"error": "Reload failed"},
                                      status_code=500)(scope, receive, send)
        return await JSONResponse({"status": "Reloaded", "routes":
                                   [r.path for r in routes]})(scope, receive, send)
