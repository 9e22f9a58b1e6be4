from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from sima.api.deps import get_auth_service, get_current_user, require_admin
from sima.core.exceptions import NotFoundException, ValidationException
from sima.schemas.common import OkOut, Page
from sima.schemas.user_schema import UserCreatedOut, UserOut
from sima.services.auth_service import AuthService

router = APIRouter(prefix="/api/usuarios", tags=["usuarios"])


# ------------------ Own account ------------------ #
# Declared before the /{user_id} routes so "me" never parses as an id.

@router.get("/me/profile", response_model=UserOut)
async def read_own_profile(current_user: dict = Depends(get_current_user),
                           auth_svc: AuthService = Depends(get_auth_service)):
    user = await auth_svc.find_by_id(current_user["id"])
    if not user:
        raise NotFoundException("Usuario")
    return user


@router.put("/me/profile", response_model=OkOut)
async def update_own_profile(payload: dict[str, Any] = Body(...),
                             current_user: dict = Depends(get_current_user),
                             auth_svc: AuthService = Depends(get_auth_service)):
    if not await auth_svc.update_profile(current_user["id"], payload):
        raise NotFoundException("Usuario")
    return OkOut()


@router.put("/me/password", response_model=OkOut)
async def change_own_password(payload: dict[str, Any] = Body(...),
                              current_user: dict = Depends(get_current_user),
                              auth_svc: AuthService = Depends(get_auth_service)):
    await auth_svc.change_own_password(current_user["id"], payload)
    return OkOut()


# ------------------ Administration ------------------ #

@router.get("", response_model=Page[UserOut])
async def list_users(page: Optional[str] = None,
                     page_size: Optional[str] = Query(None, alias="pageSize"),
                     admin: dict = Depends(require_admin),
                     auth_svc: AuthService = Depends(get_auth_service)):
    return await auth_svc.list(page or 1, page_size or 50)


@router.post("", response_model=UserCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_user(payload: dict[str, Any] = Body(...),
                      admin: dict = Depends(require_admin),
                      auth_svc: AuthService = Depends(get_auth_service)):
    created = await auth_svc.create_user(payload, admin)
    return UserCreatedOut(
        **created,
        message="Entregue la contraseña temporal al usuario; no podrá recuperarse de nuevo.",
    )


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int,
                   admin: dict = Depends(require_admin),
                   auth_svc: AuthService = Depends(get_auth_service)):
    user = await auth_svc.find_by_id(user_id)
    if not user:
        raise NotFoundException("Usuario")
    return user


@router.put("/{user_id}", response_model=OkOut)
async def update_user(user_id: int,
                      payload: dict[str, Any] = Body(...),
                      admin: dict = Depends(require_admin),
                      auth_svc: AuthService = Depends(get_auth_service)):
    if not await auth_svc.update(user_id, payload, admin):
        raise NotFoundException("Usuario")
    return OkOut()


@router.delete("/{user_id}", response_model=OkOut)
async def delete_user(user_id: int,
                      admin: dict = Depends(require_admin),
                      auth_svc: AuthService = Depends(get_auth_service)):
    if user_id == admin["id"]:
        raise ValidationException("No puede eliminar su propio usuario")
    if not await auth_svc.delete(user_id, admin):
        raise NotFoundException("Usuario")
    return OkOut()


@router.put("/{user_id}/password", response_model=OkOut)
async def admin_change_password(user_id: int,
                                payload: dict[str, Any] = Body(...),
                                admin: dict = Depends(require_admin),
                                auth_svc: AuthService = Depends(get_auth_service)):
    await auth_svc.admin_change_password(user_id, admin["id"], payload)
    return OkOut()


@router.post("/{user_id}/revoke-tokens", response_model=OkOut)
async def revoke_tokens(user_id: int,
                        admin: dict = Depends(require_admin),
                        auth_svc: AuthService = Depends(get_auth_service)):
    await auth_svc.revoke_all_tokens(user_id, admin["id"])
    return OkOut()
