from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from sima.api.deps import get_current_user, get_persona_service, get_settings, get_upload_service
from sima.api.forms import read_payload
from sima.core.config import Settings
from sima.core.exceptions import NotFoundException
from sima.schemas.common import IdOut, OkOut, Page
from sima.schemas.persona_schema import PersonaOut, PersonaStats
from sima.schemas.registro_schema import PersonaDetailOut
from sima.services.export_service import PERSONAS_COLUMNS, export_response, is_export_request
from sima.services.persona_service import PersonaService
from sima.services.upload_service import UploadService

router = APIRouter(prefix="/api/personas", tags=["personas"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=Page[PersonaOut])
async def search_personas(
        q: Optional[str] = None,
        dni: Optional[str] = None,
        comisaria: Optional[str] = None,
        page: Optional[str] = None,
        page_size: Optional[str] = Query(None, alias="pageSize"),
        fmt: Optional[str] = Query(None, alias="format"),
        service: PersonaService = Depends(get_persona_service),
        settings: Settings = Depends(get_settings),
):
    if is_export_request(fmt):
        rows = await service.get_for_export(q=q, dni=dni, comisaria=comisaria)
        return export_response(fmt, rows, PERSONAS_COLUMNS, "personas", "Personas Registradas")
    return await service.search_personas(
        q=q, dni=dni, comisaria=comisaria,
        page=page or 1, page_size=page_size or settings.DEFAULT_PAGE_SIZE,
    )


@router.get("/stats", response_model=PersonaStats)
async def persona_stats(service: PersonaService = Depends(get_persona_service)):
    return await service.get_statistics()


@router.get("/comisaria/{comisaria}", response_model=list[PersonaOut])
async def personas_by_comisaria(comisaria: str, service: PersonaService = Depends(get_persona_service)):
    return await service.get_by_comisaria(comisaria)


@router.post("", response_model=IdOut, status_code=status.HTTP_201_CREATED)
async def create_persona(
        request: Request,
        current_user: dict = Depends(get_current_user),
        service: PersonaService = Depends(get_persona_service),
        uploads: UploadService = Depends(get_upload_service),
):
    data, files = await read_payload(request)
    stored = await uploads.save_all(files)
    new_id = await service.create(data, stored, current_user)
    return IdOut(id=new_id)


@router.get("/{persona_id}", response_model=PersonaDetailOut)
async def get_persona(persona_id: int, service: PersonaService = Depends(get_persona_service)):
    persona = await service.get_details_with_registros(persona_id)
    if not persona:
        raise NotFoundException("Persona")
    return persona


@router.put("/{persona_id}", response_model=OkOut)
async def update_persona(
        persona_id: int,
        request: Request,
        current_user: dict = Depends(get_current_user),
        service: PersonaService = Depends(get_persona_service),
        uploads: UploadService = Depends(get_upload_service),
):
    data, files = await read_payload(request)
    stored = await uploads.save_all(files)
    if not await service.update(persona_id, data, stored, current_user):
        raise NotFoundException("Persona")
    return OkOut()


@router.delete("/{persona_id}", response_model=OkOut)
async def delete_persona(
        persona_id: int,
        current_user: dict = Depends(get_current_user),
        service: PersonaService = Depends(get_persona_service),
):
    if not await service.soft_delete(persona_id, current_user):
        raise NotFoundException("Persona")
    return OkOut()
