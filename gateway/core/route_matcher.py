from typing import Iterable, Optional

from .route_table import Route


def match_route(routes: Iterable[Route], method: str, path: str) -> Optional[Route]:
    for route in routes:
        if route.matches_path(path) and route.method == method:
            return route
    return None
