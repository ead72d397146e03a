from contextvars import ContextVar
from typing import Optional

from fastapi import Request

ACCESS_TOKEN_COOKIE = "access_token"

current_request: ContextVar[Request | None] = ContextVar(
    "current_request", default=None
)


def get_request() -> Request:
    req = current_request.get()
    if req is None:
        raise RuntimeError("RequestContextMiddleware is not installed")
    return req


def read_access_token(request: Request) -> Optional[str]:
    """Access token from the cookie, falling back to a Bearer header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    header = request.headers.get("authorization")
    if header and header.lower().startswith("bearer "):
        return header.split(" ", 1)[1].strip() or None
    return None
