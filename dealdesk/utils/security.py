from fastapi import Depends, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from bson import ObjectId
from jose import JWTError

from dealdesk.config.env import Settings
from dealdesk.database import get_settings, get_store
from dealdesk.utils.errors import ForbiddenError, UnauthorizedError
from dealdesk.utils.jwt import decode_token

# header auth is optional; the cookie is the primary carrier
security = HTTPBearer(auto_error=False)


def _extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.cookie_name)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store=Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    token = _extract_token(request, credentials, settings)
    if not token:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = decode_token(token, settings)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

    user_id = payload.get("sub")

    if not user_id or not ObjectId.is_valid(user_id):
        raise UnauthorizedError("Invalid token payload")

    user = await store.users.find_by_id(user_id)
    if not user:
        raise UnauthorizedError("User not found")

    return user


# the pipeline stage every protected route starts with
require_auth = get_current_user


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store=Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """The signed-in user, or None for anonymous or invalid credentials."""
    try:
        return await get_current_user(request, credentials, store, settings)
    except UnauthorizedError:
        return None


def require_role(required_role: str):
    async def checker(user=Depends(get_current_user)):
        if user.get("role") != required_role:
            raise ForbiddenError("Insufficient permissions")
        return user

    return checker


# -------------------------------
# Cookie helpers
# -------------------------------

def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.access_token_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
