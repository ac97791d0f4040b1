"""
utils/logger.py
---------------
Logging setup and the per-request access log.

Modules take their logger with ``logging.getLogger(__name__)``; the root
logger is configured once at application startup.
"""

import logging
import sys
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from dealdesk.utils.errors import InternalError, error_body

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_HANDLER_NAME = "dealdesk-stdout"

logger = logging.getLogger("dealdesk.request")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Safe to call more than once: the stdout handler is installed a single
    time and only the level is updated on later calls.
    """
    root = logging.getLogger()
    root.setLevel(level)

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)


async def request_logger(request: Request, call_next):
    rid = uuid.uuid4().hex[:8]
    request.state.rid = rid
    logger.info("-> %s %s rid=%s", request.method, request.url.path, rid)

    try:
        resp = await call_next(request)
    except Exception:
        logger.exception("Unhandled error %s %s rid=%s", request.method, request.url.path, rid)
        resp = JSONResponse(
            status_code=500,
            content=error_body(InternalError.default_message),
        )

    logger.info("<- %s status=%s rid=%s", request.url.path, resp.status_code, rid)
    resp.headers["X-Request-ID"] = rid
    return resp
