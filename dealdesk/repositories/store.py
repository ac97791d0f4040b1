"""
repositories/store.py
---------------------
Groups the per-entity repositories around one database handle.

A single ``MongoStore`` is built at startup and handed to request handlers
through FastAPI dependencies.
"""

from contextlib import asynccontextmanager

from dealdesk.repositories.audit import AuditRepository
from dealdesk.repositories.deals import DealRepository
from dealdesk.repositories.listings import ListingRepository
from dealdesk.repositories.rate_limits import RateLimitRepository
from dealdesk.repositories.users import UserRepository


class MongoStore:
    def __init__(self, client, db):
        self.client = client
        self.db = db
        self.users = UserRepository(db)
        self.listings = ListingRepository(db)
        self.deals = DealRepository(db)
        self.audit = AuditRepository(db)
        self.rate_limits = RateLimitRepository(db)

    @asynccontextmanager
    async def transaction(self):
        """
        Yield a session; every write passed ``session=`` commits together or
        not at all. Needs MongoDB running as a replica set.
        """
        async with await self.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def ping(self) -> None:
        await self.db.command("ping")

    def close(self) -> None:
        self.client.close()
