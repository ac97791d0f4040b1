"""
repositories/users.py
---------------------
Data access layer for user accounts.
"""

from pymongo import ReturnDocument

from dealdesk.repositories.base import from_doc, to_object_id, utcnow


class UserRepository:
    """CRUD on the ``users`` collection. ``email`` carries a unique index."""

    def __init__(self, db):
        self.collection = db.users

    async def insert(self, fields: dict, session=None) -> dict:
        """
        Insert a user.

        Raises:
            pymongo.errors.DuplicateKeyError: if the email is taken.
        """
        now = utcnow()
        doc = {**fields, "created_at": now, "updated_at": now}
        result = await self.collection.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        return from_doc(doc)

    async def find_by_id(self, user_id: str, session=None) -> dict | None:
        doc = await self.collection.find_one({"_id": to_object_id(user_id)}, session=session)
        return from_doc(doc)

    async def find_by_email(self, email: str, session=None) -> dict | None:
        doc = await self.collection.find_one({"email": email}, session=session)
        return from_doc(doc)

    async def find_many(self, role: str | None = None, skip: int = 0, limit: int = 20) -> list[dict]:
        query = {"role": role} if role else {}
        cursor = self.collection.find(query).sort("created_at", -1).skip(skip).limit(limit)
        return [from_doc(doc) async for doc in cursor]

    async def count(self, role: str | None = None) -> int:
        query = {"role": role} if role else {}
        return await self.collection.count_documents(query)

    async def update(self, user_id: str, fields: dict, session=None) -> dict | None:
        """Returns the updated user, or None when absent."""
        doc = await self.collection.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return from_doc(doc)

    async def delete(self, user_id: str, session=None) -> bool:
        result = await self.collection.delete_one({"_id": to_object_id(user_id)}, session=session)
        return result.deleted_count == 1
