import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from sima.core.config import Settings
from sima.core.exceptions import TokenInvalidException

# No 0/O, 1/l/I: temporary passwords are read aloud or copied by hand.
TEMP_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"

# Wire names of the identity carried inside both tokens.
TOKEN_IDENTITY_FIELDS = ("id", "usuario", "rol", "nombre", "apellido", "token_version")


def _digest(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class PasswordHasher:
    """bcrypt through passlib; cost is the configured number of rounds."""

    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash_sync(self, password: str) -> str:
        return self.pwd_context.hash(_digest(password))

    def verify_sync(self, plain_password: str, hashed_password: str | None) -> bool:
        if not plain_password or not hashed_password:
            return False
        try:
            return self.pwd_context.verify(_digest(plain_password), hashed_password)
        except (ValueError, TypeError):
            return False

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.hash_sync, password)

    async def verify(self, plain_password: str, hashed_password: str | None) -> bool:
        return await run_in_threadpool(self.verify_sync, plain_password, hashed_password)


def generate_temp_password(length: int = 12) -> str:
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))


def build_identity(user: dict) -> dict:
    """Token payload snapshot of a user row, stamped with its current token_version."""
    return {
        "id": user["id"],
        "usuario": user["usuario"],
        "rol": user["rol"],
        "nombre": user["nombre"],
        "apellido": user["apellido"],
        "token_version": user.get("token_version") or 0,
    }


class TokenService:
    """Signs and verifies the access/refresh pair. Each kind has its own secret and TTL."""

    def __init__(self, settings: Settings):
        self.access_secret = settings.JWT_ACCESS_SECRET
        self.refresh_secret = settings.JWT_REFRESH_SECRET
        self.algorithm = settings.JWT_ALGORITHM
        self.access_ttl = timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)

    def _encode(self, identity: dict, secret: str, ttl: timedelta, now: datetime) -> str:
        to_encode = {field: identity[field] for field in TOKEN_IDENTITY_FIELDS}
        to_encode.update({"iat": int(now.timestamp()), "exp": int((now + ttl).timestamp())})
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def create_token_pair(self, identity: dict, now: datetime | None = None) -> dict:
        now = now or datetime.now(timezone.utc)
        return {
            "accessToken": self._encode(identity, self.access_secret, self.access_ttl, now),
            "refreshToken": self._encode(identity, self.refresh_secret, self.refresh_ttl, now),
        }

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        if not token or not isinstance(token, str):
            raise TokenInvalidException()
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError:
            raise TokenInvalidException()
        if not isinstance(payload.get("id"), int):
            raise TokenInvalidException()
        return payload

    def decode_access_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, self.access_secret)

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        return self._decode(token, self.refresh_secret)
