"""
services/auth_service.py
------------------------
Account creation and credential checks.

Tokens are stateless: signing out only clears the client-held cookie, so
there is no server-side signout step here.
"""

import logging

from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError

from dealdesk.config.constants import ROLE_ADMIN, ROLE_USER
from dealdesk.config.env import Settings
from dealdesk.utils.errors import ConflictError, ForbiddenError, UnauthorizedError
from dealdesk.utils.guards import is_admin
from dealdesk.utils.hash import hash_password, verify_password
from dealdesk.utils.jwt import create_access_token
from dealdesk.utils.rate_limit import rate_limit

logger = logging.getLogger(__name__)


async def signup(
    store,
    email: str,
    password: str,
    role: str = ROLE_USER,
    actor: dict | None = None,
    admin_emails=(),
) -> dict:
    """
    Create a user with a bcrypt-hashed password.

    An admin account is only created for a signed-in admin (``actor``) or
    for an email listed in ``admin_emails``.

    Raises:
        ForbiddenError: if an admin role is requested without that grant.
        ConflictError: if the email is already registered.
    """
    email = email.strip().lower()

    if role == ROLE_ADMIN and not ((actor and is_admin(actor)) or email in admin_emails):
        logger.warning("ADMIN_SIGNUP_DENIED email=%s", email)
        raise ForbiddenError("Only an admin can create admin accounts")

    if await store.users.find_by_email(email):
        raise ConflictError("Email already registered")

    # bcrypt is CPU bound; keep it off the event loop
    password_hash = await run_in_threadpool(hash_password, password)

    try:
        user = await store.users.insert({
            "email": email,
            "password_hash": password_hash,
            "role": role,
        })
    except DuplicateKeyError:
        raise ConflictError("Email already registered")

    logger.info("USER_SIGNUP user=%s role=%s", user["id"], role)
    return user


async def signin(store, settings: Settings, email: str, password: str) -> dict:
    """
    Verify credentials and issue an access token.

    Unknown email and wrong password produce the same error.
    """
    email = email.strip().lower()
    throttle_key = f"signin:{email}"

    await rate_limit(
        store,
        key=throttle_key,
        max_requests=settings.signin_max_attempts,
        window_seconds=settings.signin_window_seconds,
    )

    user = await store.users.find_by_email(email)

    valid = False
    if user:
        valid = await run_in_threadpool(verify_password, password, user.get("password_hash", ""))

    if not valid:
        logger.warning("SIGNIN_FAILED email=%s", email)
        raise UnauthorizedError("Invalid email or password")

    await store.rate_limits.reset(throttle_key)

    token = create_access_token({
        "sub": user["id"],
        "role": user["role"],
    }, settings)

    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user,
    }
