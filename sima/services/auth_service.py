import logging
from typing import Any, Optional

from asyncpg import UniqueViolationError

from sima.core.exceptions import (
    ConflictException,
    InvalidCredentialsException,
    NotFoundException,
    TokenInvalidException,
    ValidationException,
)
from sima.core.sanitize import sanitize_object
from sima.core.security import PasswordHasher, TokenService, build_identity, generate_temp_password
from sima.core.validation import evaluate, validate_or_raise
from sima.repositories.user_repo import UserRepository
from sima.schemas.auth_schema import AdminChangePasswordIn, ChangeOwnPasswordIn, UserLogin
from sima.schemas.user_schema import ProfileUpdate, UserCreate, UserUpdate
from sima.services.audit_service import AuditService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Credenciales inválidas"
USERNAME_TAKEN = "El nombre de usuario ya existe"
SENSITIVE_FIELDS = ("password_hash", "token_version")


def public_user(user: Optional[dict]) -> Optional[dict]:
    if user is None:
        return None
    return {k: v for k, v in user.items() if k not in SENSITIVE_FIELDS}


class AuthService:
    """Login, token refresh and revocation, password changes and user administration.

    Every issued token embeds the user's ``token_version``. Bumping that
    counter (password change or explicit revocation) makes every refresh token
    issued before the bump useless.
    """

    entity = "usuario"

    def __init__(self, user_repo: UserRepository, hasher: PasswordHasher, tokens: TokenService,
                 audit: AuditService | None = None, temp_password_length: int = 12):
        self.user_repo = user_repo
        self.hasher = hasher
        self.tokens = tokens
        self.audit = audit
        self.temp_password_length = temp_password_length

    async def _audit(self, actor_id: Optional[int], action: str, user_id: Any, payload: dict) -> None:
        if self.audit is not None:
            await self.audit.log_action(actor_id, action, self.entity, user_id, payload)

    # ------------------ Sessions ------------------ #

    async def login(self, credentials: Any) -> dict:
        result = evaluate(UserLogin, credentials)
        if not result.ok:
            raise ValidationException(INVALID_CREDENTIALS, details=result.errors)

        user = await self.user_repo.get_active_by_username(result.value.usuario)
        # Same answer for unknown user and wrong password.
        if not user:
            raise InvalidCredentialsException(INVALID_CREDENTIALS)
        if not await self.hasher.verify(result.value.password, user.get("password_hash")):
            raise InvalidCredentialsException(INVALID_CREDENTIALS)

        logger.info("User %s logged in", user["id"])
        return self.tokens.create_token_pair(build_identity(user))

    async def refresh_tokens(self, refresh_token: Optional[str]) -> dict:
        if not refresh_token:
            raise ValidationException("Falta refreshToken")

        payload = self.tokens.decode_refresh_token(refresh_token)

        user = await self.user_repo.get_by_id(payload["id"])
        if not user or not user.get("activo"):
            raise TokenInvalidException()
        if (payload.get("token_version") or 0) != (user.get("token_version") or 0):
            raise TokenInvalidException()

        return self.tokens.create_token_pair(build_identity(user))

    async def revoke_all_tokens(self, user_id: int, actor_id: Optional[int] = None) -> int:
        new_version = await self.user_repo.increment_token_version(user_id)
        if new_version is None:
            raise NotFoundException("Usuario")
        await self._audit(actor_id, "revoke_tokens", user_id, {"token_version": new_version})
        return new_version

    # ------------------ Passwords ------------------ #

    async def change_own_password(self, user_id: int, data: Any) -> int:
        body = validate_or_raise(ChangeOwnPasswordIn, data)

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException("Usuario")
        if not await self.hasher.verify(body.actual, user.get("password_hash")):
            raise InvalidCredentialsException("Contraseña actual incorrecta")

        new_hash = await self.hasher.hash(body.nueva)
        new_version = await self.user_repo.set_password(user_id, new_hash, user_id)
        await self._audit(user_id, "password_change", user_id, {"token_version": new_version})
        return new_version

    async def admin_change_password(self, target_user_id: int, admin_user_id: int, data: Any) -> int:
        body = validate_or_raise(AdminChangePasswordIn, data)

        user = await self.user_repo.get_by_id(target_user_id)
        if not user:
            raise NotFoundException("Usuario")

        new_hash = await self.hasher.hash(body.nueva)
        new_version = await self.user_repo.set_password(target_user_id, new_hash, admin_user_id)
        await self._audit(admin_user_id, "password_change", target_user_id, {"token_version": new_version})
        return new_version

    # ------------------ User administration ------------------ #

    async def create_user(self, data: Any, admin: Optional[dict]) -> dict:
        validated = validate_or_raise(UserCreate, sanitize_object(dict(data or {}))).model_dump()

        if await self.user_repo.get_by_username(validated["usuario"]):
            raise ConflictException(USERNAME_TAKEN)

        temp_password = generate_temp_password(self.temp_password_length)
        password_hash = await self.hasher.hash(temp_password)
        admin_id = admin.get("id") if admin else None
        try:
            user_id = await self.user_repo.create(validated, password_hash, admin_id)
        except UniqueViolationError:
            raise ConflictException(USERNAME_TAKEN)

        await self._audit(admin_id, "create", user_id, validated)
        return {"id": user_id, "tempPassword": temp_password}

    async def get_user_by_username(self, usuario: str) -> Optional[dict]:
        return public_user(await self.user_repo.get_by_username(usuario))

    async def find_by_id(self, user_id: int) -> Optional[dict]:
        return public_user(await self.user_repo.get_by_id(user_id))

    async def list(self, page: Any = 1, page_size: Any = 50) -> dict:
        result = await self.user_repo.list(page, page_size)
        result["items"] = [public_user(u) for u in result["items"]]
        return result

    async def update(self, user_id: int, data: Any, actor: Optional[dict]) -> bool:
        validated = validate_or_raise(UserUpdate, sanitize_object(dict(data or {}))).model_dump()

        other = await self.user_repo.get_by_username(validated["usuario"])
        if other and other["id"] != user_id:
            raise ConflictException(USERNAME_TAKEN)

        actor_id = actor.get("id") if actor else None
        try:
            updated = await self.user_repo.update(user_id, validated, actor_id)
        except UniqueViolationError:
            raise ConflictException(USERNAME_TAKEN)
        if updated:
            await self._audit(actor_id, "update", user_id, validated)
        return updated

    async def update_profile(self, user_id: int, data: Any) -> bool:
        validated = validate_or_raise(ProfileUpdate, sanitize_object(dict(data or {}))).model_dump()
        updated = await self.user_repo.update(user_id, validated, user_id)
        if updated:
            await self._audit(user_id, "update", user_id, validated)
        return updated

    async def delete(self, user_id: int, actor: Optional[dict]) -> bool:
        deleted = await self.user_repo.delete(user_id)
        if deleted:
            await self._audit(actor.get("id") if actor else None, "delete", user_id, {})
        return deleted
