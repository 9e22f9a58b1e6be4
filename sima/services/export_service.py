import io
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from fastapi import Response
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

EXPORT_FORMATS = {"csv", "xlsx"}
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_LINE_BREAKS = re.compile(r"[\r\n]+")


@dataclass(frozen=True)
class Column:
    header: str
    key: str
    width: int = 15


PERSONAS_COLUMNS = (
    Column("ID", "id", 10),
    Column("Apellido", "apellido", 20),
    Column("Nombre", "nombre", 20),
    Column("DNI", "dni", 12),
    Column("Fecha Nacimiento", "fecha_nacimiento", 18),
    Column("Nacionalidad", "nacionalidad", 15),
    Column("Dirección", "direccion", 30),
    Column("Teléfono", "telefono", 15),
    Column("Email", "email", 25),
    Column("Comisaría", "comisaria", 20),
    Column("Observaciones", "observaciones", 30),
)

REGISTROS_COLUMNS = (
    Column("ID", "id", 10),
    Column("Persona ID", "persona_id", 12),
    Column("Tipo de delito", "tipo_delito", 25),
    Column("Lugar", "lugar", 20),
    Column("Estado", "estado", 18),
    Column("Juzgado", "juzgado", 20),
    Column("Detalle", "detalle", 40),
    Column("Creado", "created_at", 20),
)


def is_export_request(fmt: str | None) -> bool:
    return fmt in EXPORT_FORMATS


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    return _LINE_BREAKS.sub(" ", str(value)).replace(";", ",")


def to_csv(rows: Iterable[dict], columns: Iterable[Column]) -> bytes:
    columns = list(columns)
    out = io.StringIO()
    out.write("\ufeff")
    out.write(";".join(c.header for c in columns) + "\n")
    for row in rows:
        out.write(";".join(_csv_cell(row.get(c.key)) for c in columns) + "\n")
    return out.getvalue().encode("utf-8")


def _xlsx_cell(value: Any) -> Any:
    # openpyxl rejects tz-aware datetimes and arbitrary objects.
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    if value is None or isinstance(value, (str, int, float, bool, date, datetime, Decimal)):
        return value
    return str(value)


def to_xlsx(rows: Iterable[dict], columns: Iterable[Column], sheet_name: str = "Data") -> bytes:
    columns = list(columns)
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    ws.append([c.header for c in columns])
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = PatternFill(start_color="FFE0E0E0", end_color="FFE0E0E0", fill_type="solid")
    for idx, column in enumerate(columns, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = max(10, column.width)

    for row in rows:
        ws.append([_xlsx_cell(row.get(c.key)) for c in columns])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_response(fmt: str, rows: list[dict], columns: Iterable[Column],
                    base_filename: str, sheet_name: str = "Data") -> Response:
    if fmt == "csv":
        content, media_type = to_csv(rows, columns), "text/csv; charset=utf-8"
    elif fmt == "xlsx":
        content, media_type = to_xlsx(rows, columns, sheet_name), XLSX_MEDIA_TYPE
    else:
        raise ValueError(f"Unsupported export format: {fmt}")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{base_filename}.{fmt}"'},
    )
