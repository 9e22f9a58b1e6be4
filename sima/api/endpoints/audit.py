from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from sima.api.deps import get_audit_service, require_admin
from sima.schemas.audit_schema import AuditLogOut
from sima.services.audit_service import AuditService

router = APIRouter(prefix="/api/audit", tags=["audit"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[AuditLogOut])
async def recent_activity(limit: Optional[str] = None,
                          entity: Optional[str] = None,
                          action: Optional[str] = None,
                          audit: AuditService = Depends(get_audit_service)):
    return await audit.get_recent_activity(limit or 20, entity=entity, action=action)


# Must stay above /{entity}/{entity_id}, which would otherwise swallow it.
@router.get("/usuarios/{user_id}", response_model=list[AuditLogOut])
async def logs_for_user(user_id: int,
                        limit: Optional[str] = None,
                        offset: Optional[str] = None,
                        start: Optional[datetime] = None,
                        end: Optional[datetime] = None,
                        audit: AuditService = Depends(get_audit_service)):
    return await audit.get_logs_for_user(user_id, limit or 50, offset or 0, start=start, end=end)


@router.get("/{entity}/{entity_id}", response_model=list[AuditLogOut])
async def logs_for_entity(entity: str,
                          entity_id: int,
                          limit: Optional[str] = None,
                          offset: Optional[str] = None,
                          audit: AuditService = Depends(get_audit_service)):
    return await audit.get_logs_for_entity(entity, entity_id, limit or 50, offset or 0)
