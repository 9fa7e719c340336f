import json
import logging
import os
import re
import time
from asyncio import Lock
from dataclasses import dataclass, field
from typing import Any, Optional

from starlette.concurrency import run_in_threadpool

from .errors import ConfigError

logger = logging.getLogger(__name__)

ID_PLACEHOLDER = "{id}"
ID_WILDCARD = r"\w+"
MAX_PORT = 65535


@dataclass(frozen=True)
class Route:
    path: str
    method: str
    auth: bool
    host: str
    port: int | str
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # anchored at the end only: "/users/{id}" also matches "/api/v2/users/42"
        compiled = re.compile(self.path.replace(ID_PLACEHOLDER, ID_WILDCARD) + "$")
        object.__setattr__(self, "pattern", compiled)

    def matches_path(self, request_path: str) -> bool:
        return self.pattern.search(request_path) is not None

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "method": self.method,
            "auth": self.auth,
            "host": self.host,
            "port": self.port,
        }


RouteTable = tuple[Route, ...]


def _valid_port(port: Any) -> bool:
    if isinstance(port, bool):
        return False
    if isinstance(port, str):
        if not port.isascii() or not port.isdigit():
            return False
        port = int(port)
    return isinstance(port, int) and 0 < port <= MAX_PORT


def _parse_route(index: int, raw: Any) -> Route:
    if not isinstance(raw, dict):
        raise ConfigError(f"Route #{index} is not an object")

    for name in ("path", "method", "host"):
        if not isinstance(raw.get(name), str):
            raise ConfigError(f"Route #{index}: '{name}' must be a string")
    if not isinstance(raw.get("auth"), bool):
        raise ConfigError(f"Route #{index}: 'auth' must be a boolean")

    port = raw.get("port")
    if not _valid_port(port):
        raise ConfigError(f"Route #{index}: 'port' must be a number between 1 and 65535")

    try:
        return Route(
            path=raw["path"],
            method=raw["method"],
            auth=raw["auth"],
            host=raw["host"],
            port=port,
        )
    except re.error as e:
        raise ConfigError(f"Route #{index}: invalid path pattern {raw['path']!r}: {e}") from e


def load(path: str) -> RouteTable:
    """Read and parse the route document at ``path``.

    The document is a JSON array of route objects. Order is kept: the first
    route matching a request wins.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read route document {path}: {e}") from e
    except ValueError as e:
        raise ConfigError(f"Route document {path} is not valid JSON: {e}") from e

    if not isinstance(document, list):
        raise ConfigError(f"Route document {path} must be a JSON array")

    return tuple(_parse_route(i, raw) for i, raw in enumerate(document))


class RouteTableStore:
    """Holds the current route snapshot for one route document.

    The file is re-read only when its modification stamp changes, so edits
    take effect without a restart.
    """

    def __init__(self, path: str):
        self.path = path
        self.routes: Optional[RouteTable] = None
        self.last_reload = 0.0
        self.lock = Lock()
        self._stamp: Optional[tuple[int, int]] = None

    def _file_stamp(self) -> tuple[int, int]:
        try:
            st = os.stat(self.path)
        except OSError as e:
            raise ConfigError(f"Cannot read route document {self.path}: {e}") from e
        return st.st_mtime_ns, st.st_size

    def _swap(self, stamp: tuple[int, int]) -> RouteTable:
        routes = load(self.path)
        self.routes = routes
        self._stamp = stamp
        self.last_reload = time.time()
        logger.info(f"Loaded {len(routes)} routes from {self.path}")
        return routes

    def current(self) -> RouteTable:
        # blocking file I/O; async callers go through run_in_threadpool.
        # A same-size edit landing within one mtime tick of the last load goes
        # unnoticed until the next change or an explicit reload().
        stamp = self._file_stamp()
        if self.routes is not None and stamp == self._stamp:
            return self.routes
        return self._swap(stamp)

    async def reload(self) -> RouteTable:
        async with self.lock:
            return await run_in_threadpool(lambda: self._swap(self._file_stamp()))
