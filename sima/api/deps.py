from typing import Optional

from asyncpg import Connection
from fastapi import Depends, Request

from sima.core.config import Settings
from sima.core.exceptions import ForbiddenException, TokenInvalidException, UnauthorizedException
from sima.core.security import PasswordHasher, TokenService
from sima.db.session import get_db_connection
from sima.middleware.auth_middleware import bearer_token
from sima.repositories.audit_repo import AuditRepository
from sima.repositories.persona_repo import PersonaRepository
from sima.repositories.registro_repo import RegistroRepository
from sima.repositories.user_repo import UserRepository
from sima.services.audit_service import AuditService
from sima.services.auth_service import AuthService
from sima.services.persona_service import PersonaService
from sima.services.registro_service import RegistroService
from sima.services.upload_service import UploadService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


# ------------------ Authentication gate ------------------ #

async def get_current_user(
        request: Request,
        tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Identity decoded from the access token.

    The token_version is not compared with the database here; only refresh
    does that, so a revoked access token lives until it expires.
    """
    token = bearer_token(request)
    if not token:
        raise UnauthorizedException("No autorizado")

    user: Optional[dict] = getattr(request.state, "user", None)
    if user is None:
        try:
            user = tokens.decode_access_token(token)
        except TokenInvalidException:
            raise UnauthorizedException("Token inválido")
        request.state.user = user
    return user


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if current_user.get("rol") != "admin":
        raise ForbiddenException("Requiere rol admin")
    return current_user


# ------------------ Services ------------------ #

def get_audit_service(conn: Connection = Depends(get_db_connection)) -> AuditService:
    return AuditService(AuditRepository(conn))


def get_persona_service(
        conn: Connection = Depends(get_db_connection),
        audit: AuditService = Depends(get_audit_service),
        settings: Settings = Depends(get_settings),
) -> PersonaService:
    repo = PersonaRepository(conn, settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    return PersonaService(repo, audit, export_limit=settings.EXPORT_MAX_RECORDS)


def get_registro_service(
        conn: Connection = Depends(get_db_connection),
        audit: AuditService = Depends(get_audit_service),
        settings: Settings = Depends(get_settings),
) -> RegistroService:
    repo = RegistroRepository(conn, settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    return RegistroService(repo, audit, export_limit=settings.EXPORT_MAX_RECORDS)


def get_auth_service(
        conn: Connection = Depends(get_db_connection),
        audit: AuditService = Depends(get_audit_service),
        hasher: PasswordHasher = Depends(get_password_hasher),
        tokens: TokenService = Depends(get_token_service),
        settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(UserRepository(conn), hasher, tokens, audit,
                       temp_password_length=settings.TEMP_PASSWORD_LENGTH)
