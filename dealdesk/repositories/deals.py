"""
repositories/deals.py
---------------------
Data access layer for deals (offers made against listings).
"""

from dataclasses import dataclass

from dealdesk.config.constants import DEAL_PENDING, DEAL_REJECTED
from dealdesk.repositories.base import from_doc, to_object_id, to_refs, utcnow

REFS = ("listing_id", "proposer_id", "responded_by")


@dataclass
class DealFilter:
    listing_id: str | None = None
    proposer_id: str | None = None
    status: str | None = None


def _to_query(filters: DealFilter) -> dict:
    query: dict = {}
    if filters.listing_id:
        query["listing_id"] = to_object_id(filters.listing_id)
    if filters.proposer_id:
        query["proposer_id"] = to_object_id(filters.proposer_id)
    if filters.status:
        query["status"] = filters.status
    return query


class DealRepository:
    """CRUD on the ``deals`` collection, with conditional status moves."""

    def __init__(self, db):
        self.collection = db.deals

    async def insert(self, fields: dict, session=None) -> dict:
        now = utcnow()
        doc = {**to_refs(fields, REFS), "created_at": now, "updated_at": now}
        result = await self.collection.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        return from_doc(doc, REFS)

    async def find_by_id(self, deal_id: str, session=None) -> dict | None:
        doc = await self.collection.find_one({"_id": to_object_id(deal_id)}, session=session)
        return from_doc(doc, REFS)

    async def find_many(self, filters: DealFilter, skip: int = 0, limit: int = 20) -> list[dict]:
        cursor = (
            self.collection
            .find(_to_query(filters))
            .sort("created_at", -1)
            .skip(skip)
            .limit(limit)
        )
        return [from_doc(doc, REFS) async for doc in cursor]

    async def count(self, filters: DealFilter) -> int:
        return await self.collection.count_documents(_to_query(filters))

    async def find_pending_by_proposer(self, listing_id: str, proposer_id: str) -> dict | None:
        doc = await self.collection.find_one({
            "listing_id": to_object_id(listing_id),
            "proposer_id": to_object_id(proposer_id),
            "status": DEAL_PENDING,
        })
        return from_doc(doc, REFS)

    async def update_status(
        self,
        deal_id: str,
        status: str,
        responded_by: str | None = None,
        expected: str = DEAL_PENDING,
        session=None,
    ) -> bool:
        """Move a deal out of ``expected``; False when it was not in that state."""
        now = utcnow()
        fields = {"status": status, "responded_at": now, "updated_at": now}
        if responded_by is not None:
            fields["responded_by"] = to_object_id(responded_by)

        result = await self.collection.update_one(
            {"_id": to_object_id(deal_id), "status": expected},
            {"$set": fields},
            session=session,
        )
        return result.modified_count == 1

    async def reject_pending_for_listing(
        self,
        listing_id: str,
        exclude_id: str,
        responded_by: str | None = None,
        session=None,
    ) -> int:
        now = utcnow()
        fields = {"status": DEAL_REJECTED, "responded_at": now, "updated_at": now}
        if responded_by is not None:
            fields["responded_by"] = to_object_id(responded_by)

        result = await self.collection.update_many(
            {
                "listing_id": to_object_id(listing_id),
                "status": DEAL_PENDING,
                "_id": {"$ne": to_object_id(exclude_id)},
            },
            {"$set": fields},
            session=session,
        )
        return result.modified_count

    async def delete_by_listing(self, listing_id: str, session=None) -> int:
        result = await self.collection.delete_many({"listing_id": to_object_id(listing_id)}, session=session)
        return result.deleted_count

    async def delete_by_listings(self, listing_ids: list[str], session=None) -> int:
        if not listing_ids:
            return 0
        result = await self.collection.delete_many(
            {"listing_id": {"$in": [to_object_id(i) for i in listing_ids]}},
            session=session,
        )
        return result.deleted_count

    async def delete_by_proposer(self, proposer_id: str, session=None) -> int:
        result = await self.collection.delete_many({"proposer_id": to_object_id(proposer_id)}, session=session)
        return result.deleted_count
