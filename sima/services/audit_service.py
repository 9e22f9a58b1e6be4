import logging
from datetime import datetime
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

from sima.repositories.audit_repo import AuditRepository

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def _limit(value: Any, default: int) -> int:
    try:
        return min(MAX_LIMIT, max(1, int(value)))
    except (TypeError, ValueError):
        return default


def _offset(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class AuditService:
    """Audit trail writer and query helpers.

    ``log_action`` is best effort: a failed insert is logged and swallowed so
    the mutation that triggered it still succeeds.
    """

    def __init__(self, audit_repo: AuditRepository):
        self.audit_repo = audit_repo

    async def log_action(self, user_id: Optional[int], action: str, entity: str,
                         entity_id: Any, payload: Any = None) -> None:
        try:
            await self.audit_repo.insert(
                user_id=user_id or None,
                action=action,
                entity=entity,
                entity_id=int(entity_id) if entity_id is not None else None,
                payload=jsonable_encoder(payload) if isinstance(payload, dict) else {},
            )
        except Exception:
            logger.exception(
                "Audit log failed (user_id=%s action=%s entity=%s entity_id=%s)",
                user_id, action, entity, entity_id,
            )

    async def get_logs_for_entity(self, entity: str, entity_id: int,
                                  limit: Any = 50, offset: Any = 0) -> list[dict]:
        return await self.audit_repo.for_entity(entity, entity_id, _limit(limit, 50), _offset(offset))

    async def get_logs_for_user(self, user_id: int, limit: Any = 50, offset: Any = 0,
                                start: datetime | None = None, end: datetime | None = None) -> list[dict]:
        return await self.audit_repo.for_user(
            user_id, _limit(limit, 50), _offset(offset), start=start, end=end
        )

    async def get_recent_activity(self, limit: Any = 20, entity: str | None = None,
                                  action: str | None = None) -> list[dict]:
        return await self.audit_repo.recent(_limit(limit, 20), entity=entity, action=action)
