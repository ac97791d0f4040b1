from bson import ObjectId
from bson.errors import InvalidId

from dealdesk.config.constants import ROLE_ADMIN
from dealdesk.utils.errors import ValidationError

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value: str, name: str = "id") -> str:
    try:
        return str(ObjectId(value))
    except (InvalidId, TypeError):
        raise ValidationError(
            f"Invalid {name}",
            details=[{"field": f"path.{name}", "message": "Not a valid identifier"}],
        )


# -------------------------------
# Role Guard
# -------------------------------

def is_admin(user: dict) -> bool:
    return user.get("role") == ROLE_ADMIN
