import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"


def _valid_request_id(value: str | None) -> str | None:
    # only UUIDs are accepted from clients; anything else could smuggle newlines into logs
    if not value:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError:
        return None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id to the current context for the duration of the request.

    A valid incoming `X-Request-ID` is reused, otherwise a UUID4 is generated. The id
    is echoed on the response so clients can quote it when reporting a problem.
    """

    async def dispatch(self, request: Request, call_next):
        rid = _valid_request_id(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())
        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
