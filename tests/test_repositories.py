"""
Repository queries and conditional updates against mongomock, plus
transaction checks that need a real replica set (set MONGODB_URI).
"""

import asyncio
import os
import uuid

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from dealdesk.repositories.deals import DealFilter
from dealdesk.repositories.listings import ListingFilter
from dealdesk.repositories.store import MongoStore
from dealdesk.services import auth_service, deal_service
from dealdesk.utils.errors import ConflictError
from dealdesk.utils.indexes import ensure_indexes

from async_mongo import mock_database

MONGODB_URI = os.getenv("MONGODB_URI")


@pytest.fixture
async def db():
    database = mock_database()
    await ensure_indexes(database)
    return database


@pytest.fixture
def store(db):
    return MongoStore(client=None, db=db)


@pytest.fixture
async def owner(store):
    return await store.users.insert({"email": "owner@dealdesk.io", "password_hash": "x", "role": "user"})


@pytest.fixture
async def listing(store, owner):
    return await store.listings.insert({
        "title": "Road bike",
        "price": 250.0,
        "owner_id": owner["id"],
        "status": "active",
    })


async def make_deal(store, listing, proposer_id=None, status="pending"):
    return await store.deals.insert({
        "listing_id": listing["id"],
        "proposer_id": proposer_id or str(ObjectId()),
        "amount": listing["price"],
        "status": status,
    })


# =========================
# USERS
# =========================

async def test_duplicate_email_hits_unique_index(store, owner):
    with pytest.raises(DuplicateKeyError):
        await store.users.insert({"email": "owner@dealdesk.io", "password_hash": "y", "role": "user"})


async def test_signup_race_maps_duplicate_key_to_conflict(store, owner, monkeypatch):
    # the pre-check misses a user created by a concurrent request
    async def not_found(email, session=None):
        return None

    monkeypatch.setattr(store.users, "find_by_email", not_found)

    with pytest.raises(ConflictError):
        await auth_service.signup(store, "owner@dealdesk.io", "longenough1")


async def test_user_documents_use_string_ids(db, store, owner):
    raw = await db.users.find_one({"email": "owner@dealdesk.io"})

    assert isinstance(raw["_id"], ObjectId)
    assert owner["id"] == str(raw["_id"])
    assert "_id" not in owner
    assert (await store.users.find_by_id(owner["id"]))["email"] == "owner@dealdesk.io"


async def test_user_update_returns_new_document(store, owner):
    updated = await store.users.update(owner["id"], {"role": "admin"})

    assert updated["role"] == "admin"
    assert await store.users.update(str(ObjectId()), {"role": "admin"}) is None
    assert await store.users.count(role="admin") == 1
    assert [u["id"] for u in await store.users.find_many(role="admin")] == [owner["id"]]


# =========================
# LISTINGS
# =========================

async def test_listing_owner_is_stored_as_object_id(db, listing, owner):
    raw = await db.listings.find_one({"_id": ObjectId(listing["id"])})

    assert raw["owner_id"] == ObjectId(owner["id"])
    assert listing["owner_id"] == owner["id"]


async def test_update_skips_listing_in_excluded_status(store, listing):
    assert await store.listings.update_status(listing["id"], "sold", expected="active")

    assert await store.listings.update(listing["id"], {"price": 1.0}, unless_status="sold") is None
    assert (await store.listings.find_by_id(listing["id"]))["price"] == 250.0


async def test_update_applies_when_status_allows(store, listing):
    updated = await store.listings.update(listing["id"], {"price": 199.0}, unless_status="sold")

    assert updated["price"] == 199.0
    assert updated["status"] == "active"


async def test_listing_status_move_is_conditional(store, listing):
    assert await store.listings.update_status(listing["id"], "sold", expected="active") is True
    assert await store.listings.update_status(listing["id"], "sold", expected="active") is False
    assert (await store.listings.find_by_id(listing["id"]))["status"] == "sold"


async def test_search_escapes_regex_and_filters_price(store, owner, listing):
    await store.listings.insert({
        "title": "Bike (red) XL", "price": 80.0, "owner_id": owner["id"], "status": "active",
    })
    await store.listings.insert({
        "title": "Sofa", "price": 90.0, "owner_id": owner["id"], "status": "withdrawn",
    })

    found = await store.listings.find_many(ListingFilter(q="bike (RED)"))
    assert [item["title"] for item in found] == ["Bike (red) XL"]

    # a pattern character must not act as a wildcard
    assert await store.listings.count(ListingFilter(q="b.ke")) == 0

    cheap = await store.listings.find_many(ListingFilter(min_price=50, max_price=100))
    assert {item["title"] for item in cheap} == {"Bike (red) XL", "Sofa"}

    active = ListingFilter(owner_id=owner["id"], status="active", max_price=100)
    assert await store.listings.count(active) == 1


async def test_find_many_pages(store, owner):
    for n in range(5):
        await store.listings.insert({
            "title": f"Item {n}", "price": 10.0 + n, "owner_id": owner["id"], "status": "active",
        })

    first = await store.listings.find_many(ListingFilter(), skip=0, limit=2)
    rest = await store.listings.find_many(ListingFilter(), skip=2, limit=10)

    assert len(first) == 2
    assert len(rest) == 3
    assert not {i["id"] for i in first} & {i["id"] for i in rest}


async def test_owner_cleanup(store, owner, listing):
    assert await store.listings.find_ids_by_owner(owner["id"]) == [listing["id"]]
    assert await store.listings.delete_by_owner(owner["id"]) == 1
    assert await store.listings.find_by_id(listing["id"]) is None


# =========================
# DEALS
# =========================

async def test_deal_status_move_happens_once(store, listing, owner):
    deal = await make_deal(store, listing)

    assert await store.deals.update_status(deal["id"], "accepted", responded_by=owner["id"]) is True
    assert await store.deals.update_status(deal["id"], "rejected", responded_by=owner["id"]) is False

    current = await store.deals.find_by_id(deal["id"])
    assert current["status"] == "accepted"
    assert current["responded_by"] == owner["id"]
    assert current["responded_at"] is not None


async def test_reject_pending_for_listing_spares_excluded_and_others(store, owner, listing):
    other_listing = await store.listings.insert({
        "title": "Helmet", "price": 30.0, "owner_id": owner["id"], "status": "active",
    })
    keep = await make_deal(store, listing)
    siblings = [await make_deal(store, listing), await make_deal(store, listing)]
    settled = await make_deal(store, listing, status="rejected")
    elsewhere = await make_deal(store, other_listing)

    changed = await store.deals.reject_pending_for_listing(
        listing["id"], exclude_id=keep["id"], responded_by=owner["id"],
    )

    assert changed == 2
    for sibling in siblings:
        current = await store.deals.find_by_id(sibling["id"])
        assert current["status"] == "rejected"
        assert current["responded_by"] == owner["id"]
    assert (await store.deals.find_by_id(keep["id"]))["status"] == "pending"
    assert (await store.deals.find_by_id(elsewhere["id"]))["status"] == "pending"
    assert await store.deals.count(DealFilter(listing_id=listing["id"], status="rejected")) == 3
    assert (await store.deals.find_by_id(settled["id"]))["status"] == "rejected"


async def test_pending_lookup_and_bulk_deletes(store, owner, listing):
    proposer_id = str(ObjectId())
    deal = await make_deal(store, listing, proposer_id=proposer_id)

    assert (await store.deals.find_pending_by_proposer(listing["id"], proposer_id))["id"] == deal["id"]
    assert await store.deals.find_pending_by_proposer(listing["id"], str(ObjectId())) is None

    assert await store.deals.delete_by_listings([]) == 0
    assert await store.deals.delete_by_listings([listing["id"]]) == 1
    assert await store.deals.count(DealFilter(proposer_id=proposer_id)) == 0


# =========================
# RATE LIMITS / AUDIT
# =========================

async def test_rate_limit_counts_and_resets(store):
    assert [await store.rate_limits.hit("signin:a", 60) for _ in range(3)] == [1, 2, 3]

    await store.rate_limits.reset("signin:a")

    assert await store.rate_limits.hit("signin:a", 60) == 1
    assert await store.rate_limits.hit("signin:b", 60) == 1


async def test_rate_limit_window_expires(store):
    await store.rate_limits.hit("signin:a", 60)

    # a negative window puts every stored hit before the window start
    assert await store.rate_limits.hit("signin:a", -1) == 1


async def test_audit_record(db, store, owner):
    await store.audit.record(owner["id"], "user", "DEAL_ACCEPTED", {"deal_id": "d1"})

    entry = await db.audit_logs.find_one({"action": "DEAL_ACCEPTED"})
    assert entry["actor_id"] == owner["id"]
    assert entry["metadata"] == {"deal_id": "d1"}


# =========================
# TRANSACTIONS (real MongoDB)
# =========================

needs_mongo = pytest.mark.skipif(
    not MONGODB_URI, reason="set MONGODB_URI to a replica set to run transaction tests",
)


@pytest.fixture
async def live_store():
    from motor.motor_asyncio import AsyncIOMotorClient

    client = AsyncIOMotorClient(MONGODB_URI, tz_aware=True)
    db = client[f"dealdesk_test_{uuid.uuid4().hex[:8]}"]
    await ensure_indexes(db)
    try:
        yield MongoStore(client, db)
    finally:
        await client.drop_database(db.name)
        client.close()


@needs_mongo
async def test_transaction_rolls_back_every_write(live_store):
    owner = await live_store.users.insert({"email": "o@dealdesk.io", "password_hash": "x", "role": "user"})
    listing = await live_store.listings.insert({
        "title": "Kayak", "price": 400.0, "owner_id": owner["id"], "status": "active",
    })
    deal = await make_deal(live_store, listing)

    with pytest.raises(RuntimeError):
        async with live_store.transaction() as session:
            assert await live_store.deals.update_status(deal["id"], "accepted", session=session)
            assert await live_store.listings.update_status(
                listing["id"], "sold", expected="active", session=session,
            )
            raise RuntimeError("abort")

    assert (await live_store.deals.find_by_id(deal["id"]))["status"] == "pending"
    assert (await live_store.listings.find_by_id(listing["id"]))["status"] == "active"


@needs_mongo
async def test_concurrent_acceptances_sell_once(live_store):
    owner = await live_store.users.insert({"email": "o@dealdesk.io", "password_hash": "x", "role": "user"})
    listing = await live_store.listings.insert({
        "title": "Kayak", "price": 400.0, "owner_id": owner["id"], "status": "active",
    })
    deals = [await make_deal(live_store, listing) for _ in range(3)]

    results = await asyncio.gather(
        *(deal_service.respond_to_deal(live_store, owner, d["id"], "accepted") for d in deals),
        return_exceptions=True,
    )

    accepted = [r for r in results if isinstance(r, dict)]
    assert len(accepted) == 1
    assert all(isinstance(r, ConflictError) for r in results if not isinstance(r, dict))
    assert (await live_store.listings.find_by_id(listing["id"]))["status"] == "sold"
    assert await live_store.deals.count(DealFilter(listing_id=listing["id"], status="accepted")) == 1
