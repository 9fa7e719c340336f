import os
from pathlib import Path

DEFAULT_ROUTES_FILE = Path(__file__).parent / "proxy.json"

ROUTES_FILE = os.getenv("GATEWAY_ROUTES_FILE") or str(DEFAULT_ROUTES_FILE)
BACKEND_TIMEOUT = float(os.getenv("GATEWAY_BACKEND_TIMEOUT", "30"))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

GATEWAY_HOST = os.getenv("GATEWAY_HOST", "0.0.0.0")
GATEWAY_PORT = int(os.getenv("GATEWAY_PORT", "8080"))
