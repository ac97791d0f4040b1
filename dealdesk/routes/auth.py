from fastapi import APIRouter, Depends, Response, status

from dealdesk.config.env import Settings
from dealdesk.database import get_settings, get_store
from dealdesk.models.user import SigninRequest, SignupRequest
from dealdesk.services import auth_service
from dealdesk.utils.security import (
    clear_auth_cookie,
    get_current_user,
    get_optional_user,
    set_auth_cookie,
)
from dealdesk.utils.serializers import serialize_user

router = APIRouter(prefix="/auth", tags=["Auth"])

# ======================
# Signup
# ======================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    store=Depends(get_store),
    settings: Settings = Depends(get_settings),
    actor=Depends(get_optional_user),
):
    user = await auth_service.signup(
        store,
        data.email,
        data.password,
        data.role.value,
        actor=actor,
        admin_emails=settings.admin_emails,
    )
    return serialize_user(user)

# ======================
# Signin
# ======================

@router.post("/signin")
async def signin(
    data: SigninRequest,
    response: Response,
    store=Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    result = await auth_service.signin(store, settings, data.email, data.password)
    set_auth_cookie(response, result["access_token"], settings)

    return {
        "access_token": result["access_token"],
        "token_type": result["token_type"],
        "user": serialize_user(result["user"]),
    }

# ======================
# Signout
# ======================

@router.post("/signout")
async def signout(response: Response, settings: Settings = Depends(get_settings)):
    clear_auth_cookie(response, settings)
    return {"message": "Signed out"}

# ======================
# Current User
# ======================

@router.get("/me")
async def me(user=Depends(get_current_user)):
    return serialize_user(user)
