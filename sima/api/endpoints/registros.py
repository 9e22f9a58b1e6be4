from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from sima.api.deps import get_current_user, get_registro_service, get_settings
from sima.core.config import Settings
from sima.core.exceptions import NotFoundException
from sima.schemas.common import IdOut, OkOut, Page
from sima.schemas.registro_schema import RegistroDetailOut, RegistroOut
from sima.services.export_service import REGISTROS_COLUMNS, export_response, is_export_request
from sima.services.registro_service import RegistroService

router = APIRouter(prefix="/api/registros", tags=["registros"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=Page[RegistroOut])
async def search_registros(
        persona_id: Optional[int] = None,
        q: Optional[str] = None,
        page: Optional[str] = None,
        page_size: Optional[str] = Query(None, alias="pageSize"),
        fmt: Optional[str] = Query(None, alias="format"),
        service: RegistroService = Depends(get_registro_service),
        settings: Settings = Depends(get_settings),
):
    if is_export_request(fmt):
        rows = await service.get_for_export(persona_id=persona_id, q=q)
        return export_response(fmt, rows, REGISTROS_COLUMNS, "registros", "Registros Delictuales")
    return await service.search_registros(
        persona_id=persona_id, q=q,
        page=page or 1, page_size=page_size or settings.DEFAULT_PAGE_SIZE,
    )


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
async def create_registro(
        payload: dict[str, Any] = Body(...),
        current_user: dict = Depends(get_current_user),
        service: RegistroService = Depends(get_registro_service),
):
    return IdOut(id=await service.create(payload, current_user))


@router.get("/{registro_id}", response_model=RegistroDetailOut)
async def get_registro(registro_id: int, service: RegistroService = Depends(get_registro_service)):
    registro = await service.get_details(registro_id)
    if not registro:
        raise NotFoundException("Registro")
    return registro


@router.put("/{registro_id}", response_model=OkOut)
async def update_registro(
        registro_id: int,
        payload: dict[str, Any] = Body(...),
        current_user: dict = Depends(get_current_user),
        service: RegistroService = Depends(get_registro_service),
):
    if not await service.update(registro_id, payload, current_user):
        raise NotFoundException("Registro")
    return OkOut()


@router.delete("/{registro_id}", response_model=OkOut)
async def delete_registro(
        registro_id: int,
        current_user: dict = Depends(get_current_user),
        service: RegistroService = Depends(get_registro_service),
):
    if not await service.soft_delete(registro_id, current_user):
        raise NotFoundException("Registro")
    return OkOut()


@router.post("/{registro_id}/duplicate", response_model=IdOut, status_code=status.HTTP_201_CREATED)
async def duplicate_registro(
        registro_id: int,
        current_user: dict = Depends(get_current_user),
        service: RegistroService = Depends(get_registro_service),
):
    return IdOut(id=await service.duplicate(registro_id, current_user))
