import logging

from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError

from dealdesk.config.constants import AUDIT_USER_DELETED, AUDIT_USER_UPDATED
from dealdesk.repositories.base import paging
from dealdesk.utils.audit import log_audit
from dealdesk.utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from dealdesk.utils.guards import is_admin
from dealdesk.utils.hash import hash_password

logger = logging.getLogger(__name__)


async def list_users(store, page: int, limit: int, role: str | None = None) -> dict:
    items = await store.users.find_many(role=role, skip=paging(page, limit), limit=limit)
    total = await store.users.count(role=role)
    return {"items": items, "page": page, "limit": limit, "total": total}


async def get_user(store, actor: dict, user_id: str) -> dict:
    if not is_admin(actor) and actor["id"] != user_id:
        raise ForbiddenError("You can only view your own account")

    user = await store.users.find_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def update_user(store, actor: dict, user_id: str, patch: dict) -> dict:
    if not is_admin(actor):
        raise ForbiddenError("Admin access only")

    fields = {k: v for k, v in patch.items() if v is not None}
    if not fields:
        raise ValidationError("Nothing to update")

    changed = sorted(fields)

    if not await store.users.find_by_id(user_id):
        raise NotFoundError("User not found")

    if "email" in fields:
        fields["email"] = fields["email"].strip().lower()
        existing = await store.users.find_by_email(fields["email"])
        if existing and existing["id"] != user_id:
            raise ConflictError("Email already registered")

    if "password" in fields:
        fields["password_hash"] = await run_in_threadpool(hash_password, fields.pop("password"))

    try:
        user = await store.users.update(user_id, fields)
    except DuplicateKeyError:
        raise ConflictError("Email already registered")

    if not user:
        raise NotFoundError("User not found")

    await log_audit(
        store,
        actor=actor,
        action=AUDIT_USER_UPDATED,
        metadata={
            "user_id": user_id,
            "fields": changed,
        },
    )
    return user


async def delete_user(store, actor: dict, user_id: str) -> None:
    """
    Remove a user together with their listings, the deals on those
    listings, and the deals they proposed.
    """
    if not is_admin(actor):
        raise ForbiddenError("Admin access only")

    if actor["id"] == user_id:
        raise ConflictError("Admins cannot delete their own account")

    if not await store.users.find_by_id(user_id):
        raise NotFoundError("User not found")

    async with store.transaction() as session:
        listing_ids = await store.listings.find_ids_by_owner(user_id, session=session)
        await store.deals.delete_by_listings(listing_ids, session=session)
        await store.deals.delete_by_proposer(user_id, session=session)
        await store.listings.delete_by_owner(user_id, session=session)

        if not await store.users.delete(user_id, session=session):
            raise NotFoundError("User not found")

        await log_audit(
            store,
            actor=actor,
            action=AUDIT_USER_DELETED,
            metadata={"user_id": user_id, "listings_removed": len(listing_ids)},
            session=session,
        )

    logger.info("USER_DELETED user=%s by=%s", user_id, actor["id"])
