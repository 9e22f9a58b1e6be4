from datetime import datetime, timedelta, timezone
from typing import Optional

from sima.repositories.base_repo import BaseRepository, Criteria

PERSONA_SEARCH_COLUMNS = ("nombre", "apellido", "dni")

EXPORT_COLUMNS = (
    "id, apellido, nombre, dni, fecha_nacimiento, nacionalidad, direccion, "
    "telefono, email, comisaria, observaciones, created_at"
)


class PersonaRepository(BaseRepository):
    table = "personas_registradas"
    columns = (
        "nombre", "apellido", "dni", "fecha_nacimiento", "nacionalidad", "direccion",
        "telefono", "email", "observaciones", "comisaria", "foto_principal", "fotos_adicionales",
    )
    order_by = "apellido ASC, id ASC"

    async def find_active_by_dni(self, dni: str, exclude_id: int | None = None) -> Optional[dict]:
        criteria = self.active().equals("dni", dni)
        if exclude_id:
            criteria.not_equals("id", exclude_id)
        sql = f"SELECT * FROM {self.table}{criteria.sql} LIMIT 1;"
        record = await self.conn.fetchrow(sql, *criteria.args)
        return dict(record) if record else None

    def search_criteria(self, q: str | None = None, dni: str | None = None,
                        comisaria: str | None = None) -> Criteria:
        criteria = self.active()
        if q and q.strip():
            criteria.contains_any(PERSONA_SEARCH_COLUMNS, q.strip())
        if dni:
            criteria.equals("dni", dni)
        if comisaria:
            criteria.contains("comisaria", comisaria)
        return criteria

    async def export_rows(self, criteria: Criteria, limit: int) -> list[dict]:
        return await self.fetch_all(criteria, limit=limit, select=EXPORT_COLUMNS)

    async def by_comisaria(self, comisaria: str) -> list[dict]:
        return await self.fetch_all(self.active().equals("comisaria", comisaria))

    async def registros_for(self, persona_id: int) -> list[dict]:
        sql = """
            SELECT * FROM registros_delictuales
            WHERE persona_id = $1 AND deleted_at IS NULL
            ORDER BY created_at DESC, id DESC;
        """
        records = await self.conn.fetch(sql, persona_id)
        return [dict(r) for r in records]

    # ------------------ Aggregation Methods ------------------ #

    async def count_active(self) -> int:
        return await self.count(self.active())

    async def count_by_comisaria(self) -> list[dict]:
        sql = f"""
            SELECT comisaria, COUNT(*) AS count
            FROM {self.table}
            WHERE deleted_at IS NULL
            GROUP BY comisaria
            ORDER BY count DESC;
        """
        records = await self.conn.fetch(sql)
        return [{"comisaria": r["comisaria"], "count": int(r["count"])} for r in records]

    async def count_created_since(self, days: int = 30) -> int:
        since = datetime.now(timezone.utc) - timedelta(days=days)
        return await self.count(self.active().since("created_at", since))
