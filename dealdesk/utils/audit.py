import logging

logger = logging.getLogger(__name__)


async def log_audit(
    store,
    actor: dict,
    action: str,
    metadata: dict | None = None,
    session=None,
):
    logger.info("AUDIT %s actor=%s metadata=%s", action, actor["id"], metadata or {})
    await store.audit.record(
        actor_id=actor["id"],
        actor_role=actor["role"],
        action=action,
        metadata=metadata,
        session=session,
    )
