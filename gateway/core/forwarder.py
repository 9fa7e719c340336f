import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl

import httpx
from starlette.datastructures import QueryParams

from .errors import BackendTimeout, BackendUnreachable, MalformedBody
from .route_table import Route

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_SCHEME = "http://"

RawHeaders = list[tuple[bytes, bytes]]


class ForwardMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def from_verb(cls, verb: str) -> Optional["ForwardMethod"]:
        try:
            return cls(verb)
        except ValueError:
            return None


@dataclass(frozen=True)
class ForwardResult:
    headers: RawHeaders
    status_code: int
    body: bytes


def build_url(route: Route, request_path: str, environ: Mapping[str, str] = os.environ) -> str:
    host = environ.get(route.host) or DEFAULT_HOST
    return f"{host}:{route.port}{request_path}"


def collect_params(query_string: bytes, body: bytes, content_type: str = "") -> dict[str, Any]:
    """Merge query parameters with parameters carried in the request body.

    A JSON object body is merged key by key, any other JSON value lands under
    ``"_json"``. Form bodies are merged too; other content types add nothing.
    """
    params: dict[str, Any] = dict(QueryParams(query_string).items())
    if not body:
        return params

    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/json" or media_type.endswith("+json"):
        try:
            decoded = json.loads(body)
        except ValueError as e:
            raise MalformedBody() from e
        if isinstance(decoded, dict):
            params.update(decoded)
        else:
            params["_json"] = decoded
    elif media_type == "application/x-www-form-urlencoded":
        try:
            params.update(parse_qsl(body.decode("utf-8"), keep_blank_values=True, strict_parsing=True))
        except ValueError as e:
            raise MalformedBody() from e
    return params


def _query_value(value: Any) -> Any:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


def _with_scheme(url: str) -> str:
    return url if "://" in url else DEFAULT_SCHEME + url


def _outbound_headers(request: httpx.Request, inbound: RawHeaders) -> httpx.Headers:
    """The inbound headers, without the client's defaults merged in.

    Host and content-length come from the built request only when the inbound
    request has no host, or no body framing, of its own.
    """
    outbound = httpx.Headers(inbound)
    if "host" not in outbound:
        outbound["host"] = request.headers["host"]
    framed = "content-length" in outbound or "transfer-encoding" in outbound
    if not framed and "content-length" in request.headers:
        outbound["content-length"] = request.headers["content-length"]
    return outbound


class RequestForwarder:
    def __init__(self, client: httpx.AsyncClient, timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    def _build_request(
        self,
        method: ForwardMethod,
        url: str,
        headers: RawHeaders,
        params: dict[str, Any],
    ) -> httpx.Request:
        if method is ForwardMethod.GET:
            return self.client.build_request(
                "GET",
                url,
                headers=headers,
                params=[(k, _query_value(v)) for k, v in params.items()],
                timeout=self.timeout,
            )
        # POST, PUT and DELETE carry the parameters as a JSON body
        return self.client.build_request(
            method.value,
            url,
            headers=headers,
            content=json.dumps(params).encode("utf-8"),
            timeout=self.timeout,
        )

    async def forward(
        self,
        route: Route,
        method: str,
        path: str,
        headers: RawHeaders,
        params: dict[str, Any],
    ) -> Optional[ForwardResult]:
        forward_method = ForwardMethod.from_verb(method)
        if forward_method is None:
            logger.warning(f"Method {method} cannot be forwarded")
            return None

        url = _with_scheme(build_url(route, path))
        logger.info(f"Forwarding {method} {path} to {url}")

        try:
            request = self._build_request(forward_method, url, headers, params)
            request.headers = _outbound_headers(request, headers)
            response = await self.client.send(request, stream=True)
            try:
                body = b"".join([chunk async for chunk in response.aiter_raw()])
            finally:
                await response.aclose()
        except httpx.TimeoutException as e:
            logger.error(f"Backend timed out for {url}: {e}")
            raise BackendTimeout() from e
        except httpx.RequestError as e:
            logger.error(f"Request error to {url}: {e}")
            raise BackendUnreachable() from e
        except httpx.InvalidURL as e:
            logger.error(f"Cannot build a backend URL from {url}: {e}")
            raise BackendUnreachable() from e

        return ForwardResult(
            headers=list(response.headers.raw),
            status_code=response.status_code,
            body=body,
        )
