"""
services/deal_service.py
------------------------
Deal lifecycle: propose, respond, read.

State machine::

    pending -> accepted   (listing active -> sold, sibling pending deals rejected)
    pending -> rejected

Both outcomes are terminal. Every move is a conditional update on the
current status, so a second response always loses with ConflictError.
"""

import logging

from pymongo.errors import PyMongoError

from dealdesk.config.constants import (
    AUDIT_DEAL_ACCEPTED,
    AUDIT_DEAL_REJECTED,
    DEAL_ACCEPTED,
    DEAL_PENDING,
    DEAL_REJECTED,
    LISTING_ACTIVE,
    LISTING_SOLD,
)
from dealdesk.repositories.base import paging
from dealdesk.repositories.deals import DealFilter
from dealdesk.services.listing_service import can_manage
from dealdesk.utils.audit import log_audit
from dealdesk.utils.errors import ConflictError, ForbiddenError, NotFoundError
from dealdesk.utils.guards import is_admin

logger = logging.getLogger(__name__)


async def _load_deal(store, deal_id: str) -> dict:
    deal = await store.deals.find_by_id(deal_id)
    if not deal:
        raise NotFoundError("Deal not found")
    return deal


async def _load_listing(store, listing_id: str) -> dict:
    listing = await store.listings.find_by_id(listing_id)
    if not listing:
        raise NotFoundError("Listing not found")
    return listing


async def propose_deal(store, proposer: dict, listing_id: str, terms: dict) -> dict:
    listing = await _load_listing(store, listing_id)

    if listing["status"] != LISTING_ACTIVE:
        raise ConflictError("Listing is not active")

    if listing["owner_id"] == proposer["id"]:
        raise ForbiddenError("Cannot propose a deal on your own listing")

    if await store.deals.find_pending_by_proposer(listing_id, proposer["id"]):
        raise ConflictError("You already have a pending deal on this listing")

    amount = terms.get("amount")
    deal = await store.deals.insert({
        "listing_id": listing_id,
        "proposer_id": proposer["id"],
        "amount": amount if amount is not None else listing["price"],
        "message": terms.get("message"),
        "status": DEAL_PENDING,
    })

    logger.info("DEAL_PROPOSED deal=%s listing=%s proposer=%s", deal["id"], listing_id, proposer["id"])
    return deal


async def respond_to_deal(store, actor: dict, deal_id: str, decision: str) -> dict:
    deal = await _load_deal(store, deal_id)
    listing = await _load_listing(store, deal["listing_id"])

    if not can_manage(listing, actor):
        raise ForbiddenError("Only the listing owner or an admin can respond to this deal")

    if deal["status"] != DEAL_PENDING:
        raise ConflictError(f"Deal already {deal['status']}")

    if decision == DEAL_ACCEPTED:
        await _accept(store, actor, deal, listing)
    else:
        await _reject(store, actor, deal)

    return await _load_deal(store, deal_id)


async def _accept(store, actor: dict, deal: dict, listing: dict) -> None:
    try:
        auto_rejected = await _accept_in_transaction(store, actor, deal, listing)
    except PyMongoError as exc:
        # a concurrent writer touched the same documents; the transaction was aborted
        if exc.has_error_label("TransientTransactionError"):
            logger.warning("DEAL_ACCEPT_CONFLICT deal=%s listing=%s", deal["id"], listing["id"])
            raise ConflictError("Deal or listing was modified concurrently, retry") from exc
        raise

    logger.info(
        "DEAL_ACCEPTED deal=%s listing=%s auto_rejected=%s",
        deal["id"], listing["id"], auto_rejected,
    )


async def _accept_in_transaction(store, actor: dict, deal: dict, listing: dict) -> int:
    # deal, listing and siblings move together or not at all
    async with store.transaction() as session:
        if not await store.deals.update_status(
            deal["id"], DEAL_ACCEPTED, responded_by=actor["id"], session=session,
        ):
            raise ConflictError("Deal already resolved")

        if not await store.listings.update_status(
            listing["id"], LISTING_SOLD, expected=LISTING_ACTIVE, session=session,
        ):
            raise ConflictError("Listing is not active")

        auto_rejected = await store.deals.reject_pending_for_listing(
            listing["id"], exclude_id=deal["id"], responded_by=actor["id"], session=session,
        )

        await log_audit(
            store,
            actor=actor,
            action=AUDIT_DEAL_ACCEPTED,
            metadata={
                "deal_id": deal["id"],
                "listing_id": listing["id"],
                "auto_rejected": auto_rejected,
            },
            session=session,
        )

    return auto_rejected


async def _reject(store, actor: dict, deal: dict) -> None:
    if not await store.deals.update_status(deal["id"], DEAL_REJECTED, responded_by=actor["id"]):
        raise ConflictError("Deal already resolved")

    await log_audit(
        store,
        actor=actor,
        action=AUDIT_DEAL_REJECTED,
        metadata={"deal_id": deal["id"], "listing_id": deal["listing_id"]},
    )


async def get_deal(store, actor: dict, deal_id: str) -> dict:
    deal = await _load_deal(store, deal_id)

    if deal["proposer_id"] == actor["id"] or is_admin(actor):
        return deal

    listing = await store.listings.find_by_id(deal["listing_id"])
    if listing and listing["owner_id"] == actor["id"]:
        return deal

    raise ForbiddenError("You cannot view this deal")


async def list_deals(
    store,
    actor: dict,
    page: int,
    limit: int,
    status: str | None = None,
    listing_id: str | None = None,
) -> dict:
    """
    Deals on one listing (owner and admins see all of them, others only
    their own), or without ``listing_id`` the actor's proposed deals
    (admins: every deal).
    """
    filters = DealFilter(status=status)

    if listing_id:
        listing = await _load_listing(store, listing_id)
        filters.listing_id = listing_id
        if not can_manage(listing, actor):
            filters.proposer_id = actor["id"]
    elif not is_admin(actor):
        filters.proposer_id = actor["id"]

    items = await store.deals.find_many(filters, skip=paging(page, limit), limit=limit)
    total = await store.deals.count(filters)

    return {"items": items, "page": page, "limit": limit, "total": total}
