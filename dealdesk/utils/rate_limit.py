import logging

from dealdesk.utils.errors import TooManyRequestsError

logger = logging.getLogger(__name__)


async def rate_limit(
    store,
    key: str,
    max_requests: int,
    window_seconds: int,
):
    count = await store.rate_limits.hit(key, window_seconds)

    if count > max(1, max_requests):
        logger.warning("RATE_LIMITED key=%s count=%s", key, count)
        raise TooManyRequestsError()
