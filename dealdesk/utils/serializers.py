from datetime import datetime


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else None


def serialize_user(user: dict) -> dict:
    # password_hash never leaves the service boundary
    return {
        "id": user["id"],
        "email": user["email"],
        "role": user["role"],
        "created_at": _iso(user.get("created_at")),
        "updated_at": _iso(user.get("updated_at")),
    }


def serialize_listing(listing: dict) -> dict:
    return {
        "id": listing["id"],
        "owner_id": listing["owner_id"],
        "title": listing["title"],
        "description": listing.get("description"),
        "price": listing["price"],
        "status": listing["status"],
        "created_at": _iso(listing.get("created_at")),
        "updated_at": _iso(listing.get("updated_at")),
    }


def serialize_deal(deal: dict) -> dict:
    return {
        "id": deal["id"],
        "listing_id": deal["listing_id"],
        "proposer_id": deal["proposer_id"],
        "amount": deal.get("amount"),
        "message": deal.get("message"),
        "status": deal["status"],
        "responded_by": deal.get("responded_by"),
        "responded_at": _iso(deal.get("responded_at")),
        "created_at": _iso(deal.get("created_at")),
        "updated_at": _iso(deal.get("updated_at")),
    }


def serialize_page(page: dict, serializer) -> dict:
    return {
        "items": [serializer(item) for item in page["items"]],
        "page": page["page"],
        "limit": page["limit"],
        "total": page["total"],
    }
