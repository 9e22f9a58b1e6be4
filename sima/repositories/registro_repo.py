from typing import Optional

from sima.repositories.base_repo import BaseRepository, Criteria

REGISTRO_SEARCH_COLUMNS = ("tipo_delito", "lugar", "estado", "juzgado")

EXPORT_COLUMNS = "id, persona_id, tipo_delito, lugar, estado, juzgado, detalle, created_at"


class RegistroRepository(BaseRepository):
    table = "registros_delictuales"
    columns = ("persona_id", "tipo_delito", "lugar", "estado", "juzgado", "detalle")
    order_by = "id DESC"

    def search_criteria(self, persona_id: int | None = None, q: str | None = None) -> Criteria:
        criteria = self.active()
        if persona_id:
            criteria.equals("persona_id", int(persona_id))
        if q and q.strip():
            criteria.contains_any(REGISTRO_SEARCH_COLUMNS, q.strip())
        return criteria

    async def export_rows(self, criteria: Criteria, limit: int) -> list[dict]:
        return await self.fetch_all(criteria, limit=limit, select=EXPORT_COLUMNS)

    async def get_active_persona(self, persona_id: int) -> Optional[dict]:
        sql = "SELECT * FROM personas_registradas WHERE id = $1 AND deleted_at IS NULL;"
        record = await self.conn.fetchrow(sql, persona_id)
        return dict(record) if record else None
