"""
repositories/base.py
--------------------
Helpers shared by the MongoDB repositories.

Documents cross the repository boundary as plain dicts: ``_id`` becomes a
string ``id`` and reference fields are stringified, so services never see
bson types.
"""

from datetime import datetime, timezone

from bson import ObjectId


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value) -> ObjectId:
    return value if isinstance(value, ObjectId) else ObjectId(value)


def from_doc(doc: dict | None, refs: tuple = ()) -> dict | None:
    if not doc:
        return None

    out = dict(doc)
    out["id"] = str(out.pop("_id"))
    for ref in refs:
        if isinstance(out.get(ref), ObjectId):
            out[ref] = str(out[ref])
    return out


def to_refs(fields: dict, refs: tuple) -> dict:
    out = dict(fields)
    for ref in refs:
        if out.get(ref) is not None:
            out[ref] = to_object_id(out[ref])
    return out


def paging(page: int, limit: int) -> int:
    return (page - 1) * limit
