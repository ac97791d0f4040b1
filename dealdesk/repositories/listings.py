"""
repositories/listings.py
------------------------
Data access layer for listings.
"""

import re
from dataclasses import dataclass

from pymongo import ReturnDocument

from dealdesk.repositories.base import from_doc, to_object_id, to_refs, utcnow

REFS = ("owner_id",)


@dataclass
class ListingFilter:
    q: str | None = None
    owner_id: str | None = None
    status: str | None = None
    min_price: float | None = None
    max_price: float | None = None


def _to_query(filters: ListingFilter) -> dict:
    query: dict = {}

    if filters.q:
        query["title"] = {"$regex": re.escape(filters.q), "$options": "i"}

    if filters.owner_id:
        query["owner_id"] = to_object_id(filters.owner_id)

    if filters.status:
        query["status"] = filters.status

    if filters.min_price is not None or filters.max_price is not None:
        query["price"] = {}
        if filters.min_price is not None:
            query["price"]["$gte"] = filters.min_price
        if filters.max_price is not None:
            query["price"]["$lte"] = filters.max_price

    return query


class ListingRepository:
    """CRUD on the ``listings`` collection."""

    def __init__(self, db):
        self.collection = db.listings

    async def insert(self, fields: dict, session=None) -> dict:
        now = utcnow()
        doc = {**to_refs(fields, REFS), "created_at": now, "updated_at": now}
        result = await self.collection.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        return from_doc(doc, REFS)

    async def find_by_id(self, listing_id: str, session=None) -> dict | None:
        doc = await self.collection.find_one({"_id": to_object_id(listing_id)}, session=session)
        return from_doc(doc, REFS)

    async def find_many(self, filters: ListingFilter, skip: int = 0, limit: int = 20) -> list[dict]:
        cursor = (
            self.collection
            .find(_to_query(filters))
            .sort("created_at", -1)
            .skip(skip)
            .limit(limit)
        )
        return [from_doc(doc, REFS) async for doc in cursor]

    async def count(self, filters: ListingFilter) -> int:
        return await self.collection.count_documents(_to_query(filters))

    async def update(
        self,
        listing_id: str,
        fields: dict,
        unless_status: str | None = None,
        session=None,
    ) -> dict | None:
        """Returns the updated listing; None when absent or in ``unless_status``."""
        query = {"_id": to_object_id(listing_id)}
        if unless_status is not None:
            query["status"] = {"$ne": unless_status}

        doc = await self.collection.find_one_and_update(
            query,
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return from_doc(doc, REFS)

    async def update_status(
        self,
        listing_id: str,
        status: str,
        expected: str | None = None,
        session=None,
    ) -> bool:
        """Set status, only if the current status equals ``expected`` when given."""
        query = {"_id": to_object_id(listing_id)}
        if expected is not None:
            query["status"] = expected

        result = await self.collection.update_one(
            query,
            {"$set": {"status": status, "updated_at": utcnow()}},
            session=session,
        )
        return result.modified_count == 1

    async def delete(self, listing_id: str, session=None) -> bool:
        result = await self.collection.delete_one({"_id": to_object_id(listing_id)}, session=session)
        return result.deleted_count == 1

    async def find_ids_by_owner(self, owner_id: str, session=None) -> list[str]:
        cursor = self.collection.find({"owner_id": to_object_id(owner_id)}, {"_id": 1}, session=session)
        return [str(doc["_id"]) async for doc in cursor]

    async def delete_by_owner(self, owner_id: str, session=None) -> int:
        result = await self.collection.delete_many({"owner_id": to_object_id(owner_id)}, session=session)
        return result.deleted_count
