from fastapi import APIRouter, Depends, Query, Response, status
from typing import Literal, Optional

from dealdesk.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dealdesk.database import get_store
from dealdesk.models.user import UserUpdate
from dealdesk.services import user_service
from dealdesk.utils.guards import parse_object_id
from dealdesk.utils.security import require_auth, require_role
from dealdesk.utils.serializers import serialize_page, serialize_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    role: Optional[Literal["user", "admin"]] = None,
    admin=Depends(require_role("admin")),
    store=Depends(get_store),
):
    result = await user_service.list_users(store, page, limit, role)
    return serialize_page(result, serialize_user)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    target = await user_service.get_user(store, user, parse_object_id(user_id, "user_id"))
    return serialize_user(target)


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    admin=Depends(require_role("admin")),
    store=Depends(get_store),
):
    user = await user_service.update_user(
        store,
        admin,
        parse_object_id(user_id, "user_id"),
        data.model_dump(mode="json", exclude_none=True),
    )
    return serialize_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    admin=Depends(require_role("admin")),
    store=Depends(get_store),
):
    await user_service.delete_user(store, admin, parse_object_id(user_id, "user_id"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
