from typing import Any, Optional

from asyncpg import ForeignKeyViolationError

from sima.core.exceptions import NotFoundException, ReferenceException
from sima.core.sanitize import sanitize_object
from sima.repositories.registro_repo import RegistroRepository
from sima.schemas.registro_schema import RegistroIn
from sima.services.audit_service import AuditService
from sima.services.base_service import BaseService

MISSING_PERSONA_MESSAGE = "La persona referenciada no existe"
DEFAULT_EXPORT_LIMIT = 10000

# Business fields carried over by duplicate(); id, timestamps and who-columns are not.
CLONED_FIELDS = tuple(RegistroIn.model_fields)


class RegistroService(BaseService):
    schema = RegistroIn
    entity = "registro"

    repo: RegistroRepository

    def __init__(self, repo: RegistroRepository, audit: AuditService | None = None,
                 export_limit: int = DEFAULT_EXPORT_LIMIT):
        super().__init__(repo, audit)
        self.export_limit = export_limit

    def validate_data(self, data: Any) -> dict:
        return super().validate_data(sanitize_object(dict(data or {})))

    async def create(self, data: Any, actor: Optional[dict] = None) -> int:
        try:
            return await super().create(data, actor)
        except ForeignKeyViolationError:
            raise ReferenceException(MISSING_PERSONA_MESSAGE)

    async def update(self, row_id: int, data: Any, actor: Optional[dict] = None) -> bool:
        try:
            return await super().update(row_id, data, actor)
        except ForeignKeyViolationError:
            raise ReferenceException(MISSING_PERSONA_MESSAGE)

    async def search_registros(self, persona_id: Any = None, q: str | None = None,
                               page: Any = None, page_size: Any = None):
        criteria = self.repo.search_criteria(persona_id=persona_id, q=q)
        if page and page_size:
            return await self.repo.paginate(criteria, page, page_size)
        return await self.repo.fetch_all(criteria)

    async def get_for_export(self, persona_id: Any = None, q: str | None = None) -> list[dict]:
        criteria = self.repo.search_criteria(persona_id=persona_id, q=q)
        return await self.repo.export_rows(criteria, self.export_limit)

    async def get_details(self, row_id: int) -> Optional[dict]:
        registro = await self.repo.get_by_id_any(row_id)
        if not registro:
            return None
        persona = await self.repo.get_active_persona(registro["persona_id"])
        return {**registro, "persona": persona}

    async def duplicate(self, row_id: int, actor: Optional[dict] = None) -> int:
        original = await self.find_by_id(row_id)
        if not original:
            raise NotFoundException("Registro")
        data = {field: original.get(field) for field in CLONED_FIELDS}
        return await self.create(data, actor)
