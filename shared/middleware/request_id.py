import uuid
from collections.abc import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_INCOMING_ID_LENGTH = 128


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    # Only trust short caller-supplied ids; anything else gets a fresh one.
    if not incoming or len(incoming) > _MAX_INCOMING_ID_LENGTH:
        incoming = str(uuid.uuid4())
    request.state.request_id = incoming
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = incoming
    return response
