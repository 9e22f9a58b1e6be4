from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from sima.api.deps import get_auth_service
from sima.schemas.auth_schema import TokenPair
from sima.schemas.common import OkOut
from sima.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenPair)
async def login(payload: Optional[dict[str, Any]] = Body(None),
                auth_svc: AuthService = Depends(get_auth_service)):
    return await auth_svc.login(payload)


@router.post("/refresh", response_model=TokenPair)
async def refresh(payload: Optional[dict[str, Any]] = Body(None),
                  auth_svc: AuthService = Depends(get_auth_service)):
    return await auth_svc.refresh_tokens((payload or {}).get("refreshToken"))


@router.post("/logout", response_model=OkOut)
async def logout():
    # Stateless: the client drops its tokens. Server-side revocation lives
    # under /api/usuarios/{id}/revoke-tokens.
    return OkOut()
