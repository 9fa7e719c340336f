import logging
from typing import Callable, Sequence

import jwt

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], bool]

BEARER_PREFIX = "bearer "


class JwtVerifier:
    """Signature and registered-claim check for bearer tokens.

    Claims are never handed back to the caller; the gateway only needs a yes/no.
    """

    def __init__(self, secret: str, algorithms: Sequence[str] = ("HS256",)):
        self.secret = secret
        self.algorithms = list(algorithms)

    def __call__(self, token: str) -> bool:
        if token[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
            token = token[len(BEARER_PREFIX):]
        token = token.strip()
        if not token:
            return False

        try:
            jwt.decode(token, self.secret, algorithms=self.algorithms)
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            return False
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected invalid token: {e}")
            return False
        return True
