import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from gateway.config import settings
from gateway.core.admin_router import AdminRouter
from gateway.core.auth_guard import AuthGuard
from gateway.core.gateway_router import GatewayRouter
from gateway.core.logging_setup import configure_logging
from gateway.core.mount_admin_first import MountAdminFirst
from gateway.core.route_table import RouteTableStore
from gateway.core.token_verifier import JwtVerifier
from gateway.core.trace import TraceMiddleware

configure_logging()

store = RouteTableStore(settings.ROUTES_FILE)
guard = AuthGuard(JwtVerifier(settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]))

# Base gateway app
core_gateway = GatewayRouter(store, guard, timeout=settings.BACKEND_TIMEOUT)
gateway_app = TraceMiddleware(core_gateway)

# Admin gets direct access to the unwrapped GatewayRouter instance
admin_app = AdminRouter(core_gateway)

# Mount admin + gateway stack
app = MountAdminFirst(admin_app, gateway_app)

if __name__ == "__main__":
    uvicorn.run(app, host=settings.GATEWAY_HOST, port=settings.GATEWAY_PORT)
