from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from app.core.deps import AuthorizationService
from app.core.route_guard import dashboard_for, resolve_redirect
from app.schemas.auth.user import LoginUser, UserCreate
from app.services.shares.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_auth_service(auth: AuthService = Depends(AuthService)) -> AuthService:
    return auth


def get_authorization_service(
    authorization_service: AuthorizationService = Depends(AuthorizationService),
) -> AuthorizationService:
    return authorization_service


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    schema: UserCreate = Body(),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.register_async(schema)


@router.post("/login", status_code=200)
async def login(
    res: Response,
    schema: LoginUser = Body(),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.login_async(schema, res)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    res: Response,
    auth_service: AuthService = Depends(get_auth_service),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    if not authorization.read_token():
        raise HTTPException(status_code=401, detail="Unauthorized")
    user = await authorization.get_current_user_if_any()
    return await auth_service.logout_async(user, res)


@router.get("/me")
async def me(
    auth_service: AuthService = Depends(get_auth_service),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    user = await authorization.get_current_user()
    return await auth_service.me_async(user)


@router.get("/session")
async def session(
    auth_service: AuthService = Depends(get_auth_service),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    user = await authorization.get_current_user()
    return await auth_service.session_async(user)


@router.get("/redirect")
async def redirect_for_path(
    path: str = Query("/dashboard"),
    authorization: AuthorizationService = Depends(get_authorization_service),
):
    user = await authorization.get_current_user_if_any()
    role = user.role if user else None
    return {
        "redirect": resolve_redirect(path, role),
        "dashboard": dashboard_for(role) if role else None,
    }
