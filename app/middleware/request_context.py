import secrets

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import current_request


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Keep the Request reachable from services and tag every log line
    written while it is handled with a short request id.
    """

    async def dispatch(self, request, call_next):
        request_id = request.headers.get("x-request-id") or secrets.token_hex(4)
        token = current_request.set(request)
        try:
            with logger.contextualize(request_id=request_id):
                response = await call_next(request)
        finally:
            current_request.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
