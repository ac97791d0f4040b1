from fastapi import APIRouter, Depends, Query, Response, status
from typing import Literal, Optional

from dealdesk.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from dealdesk.database import get_store
from dealdesk.models.deal import DealCreate
from dealdesk.models.listing import ListingCreate, ListingUpdate
from dealdesk.repositories.listings import ListingFilter
from dealdesk.services import deal_service, listing_service
from dealdesk.utils.guards import parse_object_id
from dealdesk.utils.security import require_auth
from dealdesk.utils.serializers import serialize_deal, serialize_listing, serialize_page

router = APIRouter(prefix="/listings", tags=["Listings"])

# =========================
# SEARCH / BROWSE
# =========================

@router.get("")
async def list_listings(
    q: Optional[str] = Query(None, max_length=200, description="Title search"),
    owner_id: Optional[str] = None,
    status_: Optional[Literal["active", "sold", "withdrawn"]] = Query(None, alias="status"),
    min_price: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    max_price: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user=Depends(require_auth),
    store=Depends(get_store),
):
    filters = ListingFilter(
        q=q or None,
        owner_id=parse_object_id(owner_id, "owner_id") if owner_id else None,
        status=status_,
        min_price=min_price,
        max_price=max_price,
    )
    result = await listing_service.list_listings(store, user, filters, page, limit)
    return serialize_page(result, serialize_listing)

# =========================
# CREATE
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    data: ListingCreate,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    listing = await listing_service.create_listing(store, user, data.model_dump())
    return serialize_listing(listing)

# =========================
# DETAIL / PATCH / DELETE
# =========================

@router.get("/{listing_id}")
async def get_listing(
    listing_id: str,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    listing = await listing_service.get_listing(store, user, parse_object_id(listing_id, "listing_id"))
    return serialize_listing(listing)


@router.patch("/{listing_id}")
async def update_listing(
    listing_id: str,
    data: ListingUpdate,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    listing = await listing_service.update_listing(
        store,
        user,
        parse_object_id(listing_id, "listing_id"),
        data.model_dump(exclude_unset=True),
    )
    return serialize_listing(listing)


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: str,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    await listing_service.delete_listing(store, user, parse_object_id(listing_id, "listing_id"))
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# =========================
# DEALS ON A LISTING
# =========================

@router.get("/{listing_id}/deals")
async def listing_deals(
    listing_id: str,
    status_: Optional[Literal["pending", "accepted", "rejected"]] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user=Depends(require_auth),
    store=Depends(get_store),
):
    result = await deal_service.list_deals(
        store,
        user,
        page,
        limit,
        status=status_,
        listing_id=parse_object_id(listing_id, "listing_id"),
    )
    return serialize_page(result, serialize_deal)


@router.post("/{listing_id}/deals", status_code=status.HTTP_201_CREATED)
async def propose_deal(
    listing_id: str,
    data: DealCreate,
    user=Depends(require_auth),
    store=Depends(get_store),
):
    deal = await deal_service.propose_deal(
        store,
        user,
        parse_object_id(listing_id, "listing_id"),
        data.model_dump(),
    )
    return serialize_deal(deal)
