from dealdesk.repositories.base import utcnow


class AuditRepository:
    """Append-only ``audit_logs`` collection."""

    def __init__(self, db):
        self.collection = db.audit_logs

    async def record(
        self,
        actor_id: str,
        actor_role: str,
        action: str,
        metadata: dict | None = None,
        session=None,
    ) -> None:
        await self.collection.insert_one({
            "actor_id": actor_id,
            "actor_role": actor_role,
            "action": action,
            "metadata": metadata or {},
            "created_at": utcnow(),
        }, session=session)
