from typing import Optional

from starlette.responses import JSONResponse, Response

from .errors import MethodUnsupported
from .forwarder import ForwardResult


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


def relay(result: Optional[ForwardResult]) -> Response:
    if result is None:
        return error_response(MethodUnsupported.message, MethodUnsupported.status_code)

    response = Response(content=result.body, status_code=result.status_code)
    # backend headers replace whatever Starlette derived from the body
    response.raw_headers = list(result.headers)
    return response
