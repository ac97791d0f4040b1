from fastapi import APIRouter, Depends, Query
from typing import Literal, Optional

from dealdesk.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dealdesk.database import get_store
from dealdesk.models.deal import DealResponse
from dealdesk.services import deal_service
from dealdesk.utils.guards import parse_object_id
from dealdesk.utils.security import require_auth
from dealdesk.utils.serializers import serialize_deal, serialize_page

router = APIRouter(prefix="/deals", tags=["Deals"])


@router.get("")
async def list_deals(
    status_: Optional[Literal["pending", "accepted", "rejected"]] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user=Depends(require_auth),
    store=Depends(get_store),
):
    result = await deal_service.list_deals(store, user, page, limit, status=status_)
    return serialize_page(result, serialize_deal)


@router.get("/{deal_id}")
async def get_deal(
    deal_id: str,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    deal = await deal_service.get_deal(store, user, parse_object_id(deal_id, "deal_id"))
    return serialize_deal(deal)


@router.patch("/{deal_id}")
async def respond_to_deal(
    deal_id: str,
    data: DealResponse,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    deal = await deal_service.respond_to_deal(
        store,
        user,
        parse_object_id(deal_id, "deal_id"),
        data.decision,
    )
    return serialize_deal(deal)
