from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from sima.core.exceptions import ValidationException

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_payload(request: Request, file_field: str = "fotos") -> tuple[dict[str, Any], list[UploadFile]]:
    """Field dict plus uploaded files, from either a multipart form or a JSON body.

    Files are accepted under ``fotos`` and ``fotos[]``.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data: dict[str, Any] = {}
        files: list[UploadFile] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key in (file_field, f"{file_field}[]"):
                    files.append(value)
            else:
                data[key] = value
        return data, files

    try:
        body = await request.json()
    except ValueError:
        raise ValidationException("Cuerpo de la petición inválido")
    if not isinstance(body, dict):
        raise ValidationException("Cuerpo de la petición inválido")
    return body, []
