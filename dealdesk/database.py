import logging

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient

from dealdesk.config.env import Settings
from dealdesk.repositories.store import MongoStore

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "dealdesk"


def connect(settings: Settings) -> MongoStore:
    if not settings.mongodb_uri:
        raise RuntimeError("MONGODB_URI not set")

    client = AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)
    db = client.get_default_database(DEFAULT_DB_NAME)
    logger.info("MongoDB client created for database %s", db.name)
    return MongoStore(client, db)


def get_store(request: Request):
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
