from typing import Any, Optional

from asyncpg import Connection

from sima.repositories.base_repo import affected_rows, clamp_page, clamp_page_size

PUBLIC_COLUMNS = (
    "id, usuario, nombre, apellido, email, rol, activo, "
    "created_by, updated_by, created_at, updated_at"
)


class UserRepository:
    """Users have no soft delete: rows are removed for real."""

    def __init__(self, conn: Connection):
        self.conn = conn

    async def get_by_id(self, user_id: int) -> Optional[dict]:
        sql = "SELECT * FROM usuarios WHERE id = $1;"
        record = await self.conn.fetchrow(sql, user_id)
        return dict(record) if record else None

    async def get_by_username(self, usuario: str) -> Optional[dict]:
        sql = "SELECT * FROM usuarios WHERE usuario = $1;"
        record = await self.conn.fetchrow(sql, usuario)
        return dict(record) if record else None

    async def get_active_by_username(self, usuario: str) -> Optional[dict]:
        sql = "SELECT * FROM usuarios WHERE usuario = $1 AND activo = TRUE;"
        record = await self.conn.fetchrow(sql, usuario)
        return dict(record) if record else None

    async def list(self, page: Any = 1, page_size: Any = 50) -> dict:
        p = clamp_page(page)
        ps = clamp_page_size(page_size, default=50)
        total = await self.conn.fetchval("SELECT COUNT(*) FROM usuarios;")
        sql = f"SELECT {PUBLIC_COLUMNS} FROM usuarios ORDER BY id DESC LIMIT $1 OFFSET $2;"
        records = await self.conn.fetch(sql, ps, (p - 1) * ps)
        return {"items": [dict(r) for r in records], "total": int(total or 0), "page": p, "pageSize": ps}

    async def create(self, user_in: dict, password_hash: str, actor_id: int | None) -> int:
        sql = """
            INSERT INTO usuarios
            (usuario, password_hash, nombre, apellido, email, rol, activo, token_version, created_by, updated_by)
            VALUES ($1, $2, $3, $4, $5, $6, $7, 0, $8, $8)
            RETURNING id;
        """
        return await self.conn.fetchval(
            sql,
            user_in["usuario"],
            password_hash,
            user_in["nombre"],
            user_in["apellido"],
            user_in.get("email"),
            user_in["rol"],
            user_in.get("activo", True),
            actor_id,
        )

    async def update(self, user_id: int, values: dict, actor_id: int | None) -> bool:
        allowed = ("usuario", "nombre", "apellido", "email", "rol", "activo")
        fields = [k for k in values if k in allowed]
        assignments = [f"{name} = ${i}" for i, name in enumerate(fields, start=1)]
        args = [values[k] for k in fields] + [actor_id, user_id]
        assignments.append(f"updated_by = ${len(args) - 1}")
        assignments.append("updated_at = NOW()")
        sql = f"UPDATE usuarios SET {', '.join(assignments)} WHERE id = ${len(args)};"
        return affected_rows(await self.conn.execute(sql, *args)) > 0

    async def set_password(self, user_id: int, password_hash: str, actor_id: int | None) -> Optional[int]:
        """Store a new hash and bump token_version in one statement; returns the new version."""
        sql = """
            UPDATE usuarios
            SET password_hash = $1, token_version = token_version + 1,
                updated_by = $2, updated_at = NOW()
            WHERE id = $3
            RETURNING token_version;
        """
        return await self.conn.fetchval(sql, password_hash, actor_id, user_id)

    async def increment_token_version(self, user_id: int) -> Optional[int]:
        sql = """
            UPDATE usuarios SET token_version = token_version + 1, updated_at = NOW()
            WHERE id = $1
            RETURNING token_version;
        """
        return await self.conn.fetchval(sql, user_id)

    async def delete(self, user_id: int) -> bool:
        status = await self.conn.execute("DELETE FROM usuarios WHERE id = $1;", user_id)
        return affected_rows(status) > 0
