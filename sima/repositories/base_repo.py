from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from asyncpg import Connection

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def clamp_page(page: Any) -> int:
    try:
        return max(1, int(page))
    except (TypeError, ValueError):
        return 1


def clamp_page_size(page_size: Any, default: int = DEFAULT_PAGE_SIZE, maximum: int = MAX_PAGE_SIZE) -> int:
    try:
        size = int(page_size)
    except (TypeError, ValueError):
        size = default
    return min(maximum, max(1, size))


def affected_rows(status: str) -> int:
    # asyncpg returns the command tag, e.g. "UPDATE 1" / "DELETE 0".
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class Criteria:
    """WHERE-clause accumulator with asyncpg positional parameters."""

    def __init__(self, *clauses: str):
        self.clauses: list[str] = list(clauses)
        self.args: list[Any] = []

    def param(self, value: Any) -> str:
        self.args.append(value)
        return f"${len(self.args)}"

    def equals(self, column: str, value: Any) -> "Criteria":
        self.clauses.append(f"{column} = {self.param(value)}")
        return self

    def not_equals(self, column: str, value: Any) -> "Criteria":
        self.clauses.append(f"{column} <> {self.param(value)}")
        return self

    def contains(self, column: str, term: str) -> "Criteria":
        self.clauses.append(f"{column} ILIKE {self.param(f'%{term}%')}")
        return self

    def contains_any(self, columns: Iterable[str], term: str) -> "Criteria":
        placeholder = self.param(f"%{term}%")
        self.clauses.append("(" + " OR ".join(f"{c} ILIKE {placeholder}" for c in columns) + ")")
        return self

    def since(self, column: str, moment: datetime) -> "Criteria":
        self.clauses.append(f"{column} >= {self.param(moment)}")
        return self

    def until(self, column: str, moment: datetime) -> "Criteria":
        self.clauses.append(f"{column} <= {self.param(moment)}")
        return self

    @property
    def sql(self) -> str:
        return f" WHERE {' AND '.join(self.clauses)}" if self.clauses else ""


class BaseRepository:
    """Soft-delete-aware persistence for one table.

    Rows whose ``deleted_at`` is set are invisible to every operation here
    except :meth:`get_by_id_any`.
    """

    table: str = ""
    columns: tuple[str, ...] = ()
    order_by: str = "id DESC"

    def __init__(self, conn: Connection, default_page_size: int = DEFAULT_PAGE_SIZE,
                 max_page_size: int = MAX_PAGE_SIZE):
        self.conn = conn
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _check_columns(self, names: Iterable[str]) -> None:
        unknown = [n for n in names if n not in self.columns]
        if unknown:
            raise ValueError(f"Unknown column(s) for {self.table}: {', '.join(unknown)}")

    def active(self) -> Criteria:
        return Criteria("deleted_at IS NULL")

    # ------------------ Retrieval ------------------ #

    async def get_by_id(self, row_id: int) -> Optional[dict]:
        sql = f"SELECT * FROM {self.table} WHERE id = $1 AND deleted_at IS NULL;"
        record = await self.conn.fetchrow(sql, row_id)
        return dict(record) if record else None

    async def get_by_id_any(self, row_id: int) -> Optional[dict]:
        sql = f"SELECT * FROM {self.table} WHERE id = $1;"
        record = await self.conn.fetchrow(sql, row_id)
        return dict(record) if record else None

    async def fetch_all(self, criteria: Criteria, order_by: str | None = None,
                        limit: int | None = None, select: str = "*") -> list[dict]:
        sql = f"SELECT {select} FROM {self.table}{criteria.sql} ORDER BY {order_by or self.order_by}"
        args = list(criteria.args)
        if limit:
            args.append(limit)
            sql += f" LIMIT ${len(args)}"
        records = await self.conn.fetch(sql + ";", *args)
        return [dict(r) for r in records]

    async def count(self, criteria: Criteria) -> int:
        sql = f"SELECT COUNT(*) FROM {self.table}{criteria.sql};"
        return int(await self.conn.fetchval(sql, *criteria.args) or 0)

    async def paginate(self, criteria: Criteria, page: Any, page_size: Any,
                       order_by: str | None = None) -> dict:
        p = clamp_page(page)
        ps = clamp_page_size(page_size, self.default_page_size, self.max_page_size)

        total = await self.count(criteria)
        args = list(criteria.args) + [ps, (p - 1) * ps]
        sql = (
            f"SELECT * FROM {self.table}{criteria.sql} "
            f"ORDER BY {order_by or self.order_by} "
            f"LIMIT ${len(args) - 1} OFFSET ${len(args)};"
        )
        records = await self.conn.fetch(sql, *args)
        return {"items": [dict(r) for r in records], "total": total, "page": p, "pageSize": ps}

    async def list(self, page: Any = 1, page_size: Any = None, filters: dict | None = None) -> dict:
        criteria = self.active()
        for column, value in (filters or {}).items():
            if value is None or value == "":
                continue
            self._check_columns([column])
            criteria.equals(column, value)
        return await self.paginate(criteria, page, page_size or self.default_page_size)

    async def search(self, term: str | None, columns: Iterable[str], page: Any = None,
                     page_size: Any = None):
        columns = list(columns)
        term = (term or "").strip()
        if not term or not columns:
            return await self.list(page or 1, page_size)

        self._check_columns(columns)
        criteria = self.active().contains_any(columns, term)
        if page and page_size:
            return await self.paginate(criteria, page, page_size)
        return await self.fetch_all(criteria)

    # ------------------ Mutations ------------------ #

    async def insert(self, values: dict, actor_id: int | None) -> int:
        self._check_columns(values.keys())
        names = list(values.keys()) + ["created_by", "updated_by"]
        args = list(values.values()) + [actor_id, actor_id]
        placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
        sql = f"INSERT INTO {self.table} ({', '.join(names)}) VALUES ({placeholders}) RETURNING id;"
        return await self.conn.fetchval(sql, *args)

    async def update(self, row_id: int, values: dict, actor_id: int | None) -> bool:
        self._check_columns(values.keys())
        assignments = [f"{name} = ${i}" for i, name in enumerate(values.keys(), start=1)]
        args = list(values.values()) + [actor_id, row_id]
        assignments.append(f"updated_by = ${len(args) - 1}")
        assignments.append("updated_at = NOW()")
        sql = (
            f"UPDATE {self.table} SET {', '.join(assignments)} "
            f"WHERE id = ${len(args)} AND deleted_at IS NULL;"
        )
        return affected_rows(await self.conn.execute(sql, *args)) > 0

    async def soft_delete(self, row_id: int, actor_id: int | None) -> bool:
        sql = (
            f"UPDATE {self.table} SET deleted_at = $1, updated_by = $2, updated_at = NOW() "
            f"WHERE id = $3 AND deleted_at IS NULL;"
        )
        status = await self.conn.execute(sql, datetime.now(timezone.utc), actor_id, row_id)
        return affected_rows(status) > 0
