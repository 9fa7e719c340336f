class GatewayError(Exception):
    status_code = 500
    message = "Internal gateway error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.message
        self.status_code = status_code or self.status_code
        super().__init__(self.message)


class ConfigError(GatewayError):
    status_code = 500
    message = "Route configuration is not available"


class RouteNotFound(GatewayError):
    status_code = 404
    message = "Route is not available"


class AuthRejected(GatewayError):
    # missing and invalid tokens share one message on purpose
    status_code = 401
    message = "Missing token"


class MethodUnsupported(GatewayError):
    status_code = 405
    message = "Method is not supported"


class MalformedBody(GatewayError):
    status_code = 400
    message = "Malformed request body"


class BackendUnreachable(GatewayError):
    status_code = 502
    message = "Backend is not reachable"


class BackendTimeout(GatewayError):
    status_code = 504
    message = "Backend timed out"
