from datetime import datetime, timezone
from typing import Any, Optional

from asyncpg import Connection

from sima.repositories.base_repo import Criteria


class AuditRepository:
    """Append-only access to audit_logs."""

    def __init__(self, conn: Connection):
        self.conn = conn

    async def insert(self, user_id: Optional[int], action: str, entity: str,
                     entity_id: Optional[int], payload: dict[str, Any]) -> int:
        sql = """
            INSERT INTO audit_logs (user_id, action, entity, entity_id, payload, created_at)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id;
        """
        return await self.conn.fetchval(
            sql, user_id, action, entity, entity_id, payload, datetime.now(timezone.utc)
        )

    async def _select(self, criteria: Criteria, limit: int, offset: int = 0) -> list[dict]:
        args = list(criteria.args) + [limit, offset]
        sql = (
            f"SELECT * FROM audit_logs{criteria.sql} "
            f"ORDER BY created_at DESC, id DESC LIMIT ${len(args) - 1} OFFSET ${len(args)};"
        )
        records = await self.conn.fetch(sql, *args)
        return [dict(r) for r in records]

    async def for_entity(self, entity: str, entity_id: int, limit: int, offset: int) -> list[dict]:
        criteria = Criteria().equals("entity", entity).equals("entity_id", entity_id)
        return await self._select(criteria, limit, offset)

    async def for_user(self, user_id: int, limit: int, offset: int,
                       start: datetime | None = None, end: datetime | None = None) -> list[dict]:
        criteria = Criteria().equals("user_id", user_id)
        if start:
            criteria.since("created_at", start)
        if end:
            criteria.until("created_at", end)
        return await self._select(criteria, limit, offset)

    async def recent(self, limit: int, entity: str | None = None, action: str | None = None) -> list[dict]:
        criteria = Criteria()
        if entity:
            criteria.equals("entity", entity)
        if action:
            criteria.equals("action", action)
        return await self._select(criteria, limit)
