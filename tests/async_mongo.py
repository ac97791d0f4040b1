"""
Awaitable wrappers around mongomock, shaped like the motor objects the
repositories use: collection methods are coroutines and cursors are
consumed with ``async for``.
"""

import mongomock


class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count):
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count):
        self._cursor = self._cursor.limit(count)
        return self

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._cursor)
        except StopIteration:
            raise StopAsyncIteration


class AsyncCollection:
    def __init__(self, collection):
        self._collection = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self._collection.find(*args, **kwargs))

    def list_indexes(self, *args, **kwargs):
        return AsyncCursor(iter(self._collection.list_indexes(*args, **kwargs)))

    def __getattr__(self, name):
        method = getattr(self._collection, name)

        async def call(*args, **kwargs):
            return method(*args, **kwargs)

        return call


class AsyncDatabase:
    def __init__(self, db):
        self._db = db

    def __getattr__(self, name):
        return AsyncCollection(self._db[name])


def mock_database(name: str = "dealdesk") -> AsyncDatabase:
    """A fresh, empty in-memory database."""
    return AsyncDatabase(mongomock.MongoClient().get_database(name))
