from typing import Any, Optional

from asyncpg import UniqueViolationError

from sima.core.exceptions import ConflictException
from sima.core.sanitize import sanitize_email, sanitize_object, sanitize_phone
from sima.repositories.persona_repo import PersonaRepository
from sima.schemas.persona_schema import PersonaIn
from sima.services.audit_service import AuditService
from sima.services.base_service import BaseService, actor_id

DUPLICATE_DNI_MESSAGE = "Ya existe una persona con este DNI"
DEFAULT_EXPORT_LIMIT = 10000


def process_photos(files: list[str] | None) -> dict:
    """First reference is the main photo; the whole ordered list is kept as extras."""
    if not files:
        return {"principal": None, "additional": []}
    refs = list(files)
    return {"principal": refs[0], "additional": refs}


class PersonaService(BaseService):
    schema = PersonaIn
    entity = "persona"

    repo: PersonaRepository

    def __init__(self, repo: PersonaRepository, audit: AuditService | None = None,
                 export_limit: int = DEFAULT_EXPORT_LIMIT):
        super().__init__(repo, audit)
        self.export_limit = export_limit

    def validate_data(self, data: Any) -> dict:
        sanitized = sanitize_object(dict(data or {}), html_fields=["observaciones"], max_length=2000)
        # Keep a rejected email so validation names the field; an unusable phone is dropped.
        if sanitized.get("email"):
            sanitized["email"] = sanitize_email(sanitized["email"]) or sanitized["email"]
        if sanitized.get("telefono"):
            sanitized["telefono"] = sanitize_phone(sanitized["telefono"])
        return super().validate_data(sanitized)

    async def check_duplicate_dni(self, dni: str, exclude_id: int | None = None) -> None:
        if await self.repo.find_active_by_dni(dni, exclude_id):
            raise ConflictException(DUPLICATE_DNI_MESSAGE)

    async def create(self, data: Any, files: list[str] | None = None,
                     actor: Optional[dict] = None) -> int:
        validated = self.validate_data(data)
        await self.check_duplicate_dni(validated["dni"])

        photos = process_photos(files)
        values = {
            **validated,
            "foto_principal": photos["principal"],
            "fotos_adicionales": photos["additional"],
        }
        try:
            row_id = await self.repo.insert(values, actor_id(actor))
        except UniqueViolationError:
            # A concurrent insert passed the pre-check first; the index decides.
            raise ConflictException(DUPLICATE_DNI_MESSAGE)

        await self._audit(actor, "create", row_id, validated)
        return row_id

    async def update(self, row_id: int, data: Any, files: list[str] | None = None,
                     actor: Optional[dict] = None) -> bool:
        validated = self.validate_data(data)

        existing = await self.find_by_id(row_id)
        if not existing:
            return False
        if validated["dni"] != existing["dni"]:
            await self.check_duplicate_dni(validated["dni"], exclude_id=row_id)

        values = dict(validated)
        if files:
            photos = process_photos(files)
            values["foto_principal"] = photos["principal"]
            values["fotos_adicionales"] = photos["additional"]

        try:
            updated = await self.repo.update(row_id, values, actor_id(actor))
        except UniqueViolationError:
            raise ConflictException(DUPLICATE_DNI_MESSAGE)

        if updated:
            await self._audit(actor, "update", row_id, values)
        return updated

    async def search_personas(self, q: str | None = None, dni: str | None = None,
                              comisaria: str | None = None, page: Any = None,
                              page_size: Any = None):
        """Paginated dict when both page and page_size are given, else every match by surname."""
        criteria = self.repo.search_criteria(q=q, dni=dni, comisaria=comisaria)
        if page and page_size:
            return await self.repo.paginate(criteria, page, page_size, order_by="apellido ASC, id ASC")
        return await self.repo.fetch_all(criteria, order_by="apellido ASC, id ASC")

    async def get_for_export(self, q: str | None = None, dni: str | None = None,
                             comisaria: str | None = None) -> list[dict]:
        criteria = self.repo.search_criteria(q=q, dni=dni, comisaria=comisaria)
        return await self.repo.export_rows(criteria, self.export_limit)

    async def get_by_comisaria(self, comisaria: str) -> list[dict]:
        return await self.repo.by_comisaria(comisaria)

    async def get_details_with_registros(self, row_id: int) -> Optional[dict]:
        # Direct id lookups still see soft-deleted personas; listings do not.
        persona = await self.repo.get_by_id_any(row_id)
        if not persona:
            return None
        registros = await self.repo.registros_for(row_id)
        return {**persona, "registros_delictuales": registros, "total_registros": len(registros)}

    async def get_statistics(self) -> dict:
        return {
            "total_personas": await self.repo.count_active(),
            "personas_por_comisaria": await self.repo.count_by_comisaria(),
            "registros_ultimos_30_dias": await self.repo.count_created_since(30),
        }
