from datetime import timedelta

from pymongo import ReturnDocument

from dealdesk.repositories.base import utcnow


class RateLimitRepository:
    """Fixed-window hit counters keyed by an arbitrary string."""

    def __init__(self, db):
        self.collection = db.rate_limits

    async def hit(self, key: str, window_seconds: int) -> int:
        """Count one hit and return the number of hits in the current window."""
        now = utcnow()
        window_start = now - timedelta(seconds=window_seconds)

        # a window that has elapsed starts over
        await self.collection.delete_one({"key": key, "created_at": {"$lt": window_start}})

        doc = await self.collection.find_one_and_update(
            {"key": key},
            {
                "$inc": {"count": 1},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return doc["count"]

    async def reset(self, key: str) -> None:
        await self.collection.delete_one({"key": key})
