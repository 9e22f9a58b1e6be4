from typing import Any, Iterable, Optional, Type

from pydantic import BaseModel

from sima.core.validation import validate_or_raise
from sima.repositories.base_repo import BaseRepository
from sima.services.audit_service import AuditService


def actor_id(actor: Optional[dict]) -> Optional[int]:
    return actor.get("id") if actor else None


class BaseService:
    """Validated CRUD over a BaseRepository, with an audit entry per successful mutation."""

    schema: Type[BaseModel]
    entity: str = ""

    def __init__(self, repo: BaseRepository, audit: AuditService | None = None):
        self.repo = repo
        self.audit = audit

    def validate_data(self, data: Any) -> dict:
        return validate_or_raise(self.schema, data).model_dump()

    async def _audit(self, actor: Optional[dict], action: str, row_id: Any, payload: dict) -> None:
        if self.audit is not None:
            await self.audit.log_action(actor_id(actor), action, self.entity, row_id, payload)

    async def create(self, data: Any, actor: Optional[dict]) -> int:
        validated = self.validate_data(data)
        row_id = await self.repo.insert(validated, actor_id(actor))
        await self._audit(actor, "create", row_id, validated)
        return row_id

    async def find_by_id(self, row_id: int) -> Optional[dict]:
        return await self.repo.get_by_id(row_id)

    async def update(self, row_id: int, data: Any, actor: Optional[dict]) -> bool:
        validated = self.validate_data(data)
        updated = await self.repo.update(row_id, validated, actor_id(actor))
        if updated:
            await self._audit(actor, "update", row_id, validated)
        return updated

    async def soft_delete(self, row_id: int, actor: Optional[dict]) -> bool:
        deleted = await self.repo.soft_delete(row_id, actor_id(actor))
        if deleted:
            await self._audit(actor, "delete", row_id, {})
        return deleted

    async def list(self, page: Any = 1, page_size: Any = None, filters: dict | None = None) -> dict:
        return await self.repo.list(page, page_size, filters)

    async def search(self, term: str | None, columns: Iterable[str], page: Any = None,
                     page_size: Any = None):
        return await self.repo.search(term, columns, page, page_size)
