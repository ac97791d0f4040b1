"""
services/listing_service.py
---------------------------
Listing lifecycle: create, read, patch, delete.

A listing becomes ``sold`` only through deal acceptance (see
deal_service); after that it can no longer be patched.
"""

import logging

from dealdesk.config.constants import AUDIT_LISTING_DELETED, LISTING_ACTIVE, LISTING_SOLD
from dealdesk.repositories.base import paging
from dealdesk.repositories.listings import ListingFilter
from dealdesk.utils.audit import log_audit
from dealdesk.utils.errors import ConflictError, ForbiddenError, NotFoundError
from dealdesk.utils.guards import is_admin

logger = logging.getLogger(__name__)


def can_manage(listing: dict, actor: dict) -> bool:
    return is_admin(actor) or listing["owner_id"] == actor["id"]


async def _load(store, listing_id: str) -> dict:
    listing = await store.listings.find_by_id(listing_id)
    if not listing:
        raise NotFoundError("Listing not found")
    return listing


async def create_listing(store, owner: dict, data: dict) -> dict:
    listing = await store.listings.insert({
        "owner_id": owner["id"],
        "title": data["title"],
        "description": data.get("description"),
        "price": data["price"],
        "status": LISTING_ACTIVE,
    })
    logger.info("LISTING_CREATED listing=%s owner=%s", listing["id"], owner["id"])
    return listing


async def get_listing(store, actor: dict, listing_id: str) -> dict:
    listing = await _load(store, listing_id)

    # closed listings are hidden from everyone but the owner and admins
    if listing["status"] != LISTING_ACTIVE and not can_manage(listing, actor):
        raise NotFoundError("Listing not found")

    return listing


async def list_listings(store, actor: dict, filters: ListingFilter, page: int, limit: int) -> dict:
    """
    Paginated listing search, newest first.

    Admins see every status. Other users see active listings, except when
    browsing their own (``owner_id`` equal to their id).
    """
    sees_all = is_admin(actor) or filters.owner_id == actor["id"]

    if not sees_all:
        if filters.status and filters.status != LISTING_ACTIVE:
            raise ForbiddenError("Only active listings can be browsed")
        filters.status = LISTING_ACTIVE

    items = await store.listings.find_many(filters, skip=paging(page, limit), limit=limit)
    total = await store.listings.count(filters)

    return {"items": items, "page": page, "limit": limit, "total": total}


async def update_listing(store, actor: dict, listing_id: str, patch: dict) -> dict:
    listing = await _load(store, listing_id)

    if not can_manage(listing, actor):
        raise ForbiddenError("Only the owner or an admin can modify this listing")

    if listing["status"] == LISTING_SOLD:
        raise ConflictError("Sold listings cannot be modified")

    updated = await store.listings.update(listing_id, patch, unless_status=LISTING_SOLD)
    if not updated:
        # sold (or removed) between the read and the write
        raise ConflictError("Listing changed while updating, please retry")

    return updated


async def delete_listing(store, actor: dict, listing_id: str) -> None:
    listing = await _load(store, listing_id)

    if not can_manage(listing, actor):
        raise ForbiddenError("Only the owner or an admin can delete this listing")

    async with store.transaction() as session:
        removed_deals = await store.deals.delete_by_listing(listing_id, session=session)

        if not await store.listings.delete(listing_id, session=session):
            raise NotFoundError("Listing not found")

        await log_audit(
            store,
            actor=actor,
            action=AUDIT_LISTING_DELETED,
            metadata={"listing_id": listing_id, "deals_removed": removed_deals},
            session=session,
        )
