from enum import Enum
from typing import Iterable

from .route_table import Route
from .token_verifier import TokenVerifier

AUTH_HEADER = b"authorization"


class AuthDecision(Enum):
    FORWARD = "forward"
    MISSING = "missing"
    INVALID = "invalid"


class AuthGuard:
    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier

    def authenticate(self, route: Route, headers: Iterable[tuple[bytes, bytes]]) -> AuthDecision:
        if not route.auth:
            return AuthDecision.FORWARD

        token = next((v for k, v in headers if k == AUTH_HEADER), None)
        if token is None:
            return AuthDecision.MISSING

        if self.verifier(token.decode("latin-1")):
            return AuthDecision.FORWARD
        return AuthDecision.INVALID
