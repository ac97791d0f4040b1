from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

RATE_LIMIT_TTL_SECONDS = 86400


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Users
    await _create_index_safe(
        db.users,
        [("email", ASCENDING)],
        name="users_email_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.users,
        [("role", ASCENDING), ("created_at", DESCENDING)],
        name="users_role_created_idx",
    )

    # Listings
    await _create_index_safe(
        db.listings,
        [("status", ASCENDING), ("created_at", DESCENDING)],
        name="listings_status_created_idx",
    )
    await _create_index_safe(
        db.listings,
        [("owner_id", ASCENDING), ("created_at", DESCENDING)],
        name="listings_owner_created_idx",
    )

    # Deals
    await _create_index_safe(
        db.deals,
        [("listing_id", ASCENDING), ("status", ASCENDING)],
        name="deals_listing_status_idx",
    )
    await _create_index_safe(
        db.deals,
        [("proposer_id", ASCENDING), ("created_at", DESCENDING)],
        name="deals_proposer_created_idx",
    )

    # Audit
    await _create_index_safe(
        db.audit_logs,
        [("created_at", DESCENDING)],
        name="audit_logs_created_idx",
    )

    # Rate limits
    await _create_index_safe(
        db.rate_limits,
        [("key", ASCENDING)],
        name="rate_limits_key_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.rate_limits,
        [("created_at", ASCENDING)],
        name="rate_limits_ttl_idx",
        expireAfterSeconds=RATE_LIMIT_TTL_SECONDS,
    )
