from starlette.types import ASGIApp, Scope, Receive, Send

ADMIN_PREFIX = "/__"


class MountAdminFirst:
    """Sends admin paths to ``admin_app``; everything else, lifespan included, to the gateway."""

    def __init__(self, admin_app: ASGIApp, gateway_app: ASGIApp, prefix: str = ADMIN_PREFIX) -> None:
        self.admin_app = admin_app
        self.gateway_app = gateway_app
        self.prefix = prefix

    def is_admin(self, scope: Scope) -> bool:
        return scope["type"] == "http" and scope["path"].startswith(self.prefix)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        target = self.admin_app if self.is_admin(scope) else self.gateway_app
        await target(scope, receive, send)
