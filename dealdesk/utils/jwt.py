from datetime import datetime, timedelta, timezone
from jose import jwt

from dealdesk.config.env import Settings


def _require_jwt_secret(settings: Settings) -> str:
    secret = (settings.jwt_secret or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def create_access_token(payload: dict, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = payload.copy()
    payload.update({
        "exp": now + timedelta(minutes=settings.access_token_minutes),
        "iat": now,
    })
    return jwt.encode(payload, _require_jwt_secret(settings), algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Raises jose.JWTError (ExpiredSignatureError included) on a bad token."""
    return jwt.decode(token, _require_jwt_secret(settings), algorithms=[settings.jwt_algorithm])
