from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import ACCESS_TOKEN_COOKIE
from app.core.route_guard import is_guarded_path, resolve_redirect
from app.core.security import SecurityService


class RoleGateMiddleware(BaseHTTPMiddleware):
    """Redirect dashboard and auth page requests according to the role in the token."""

    async def dispatch(self, request, call_next):
        path = request.url.path
        if not is_guarded_path(path):
            return await call_next(request)

        role = None
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
        if token:
            async with SecurityService() as security:
                try:
                    role = (await security.decode_access_token(token)).get("role")
                except ValueError:
                    role = None

        target = resolve_redirect(path, role)
        if target and target != path:
            return RedirectResponse(url=target, status_code=307)
        return await call_next(request)
