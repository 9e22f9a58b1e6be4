"""Shared fixtures: test settings, an in-memory user store and app factories."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from sima.core.config import Settings
from sima.core.security import PasswordHasher, TokenService, build_identity
from sima.repositories.audit_repo import AuditRepository
from sima.services.audit_service import AuditService


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        BCRYPT_ROUNDS=4,
        JWT_ACCESS_SECRET="test-access-secret",
        JWT_REFRESH_SECRET="test-refresh-secret",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        UPLOAD_MAX_SIZE=1024,
        UPLOAD_MAX_FILES=3,
    )


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def audit_repo():
    return MagicMock(spec=AuditRepository)


@pytest.fixture
def audit(audit_repo):
    return AuditService(audit_repo)


class FakeUserRepo:
    """In-memory stand-in for UserRepository with the same async surface."""

    def __init__(self):
        self.rows: dict[int, dict] = {}
        self._next_id = 1

    def add(self, **fields) -> dict:
        now = datetime.now(timezone.utc)
        row = {
            "id": self._next_id,
            "email": None,
            "activo": True,
            "token_version": 0,
            "created_by": None,
            "updated_by": None,
            "created_at": now,
            "updated_at": now,
            **fields,
        }
        self.rows[row["id"]] = row
        self._next_id += 1
        return row

    async def get_by_id(self, user_id):
        row = self.rows.get(user_id)
        return dict(row) if row else None

    async def get_by_username(self, usuario):
        for row in self.rows.values():
            if row["usuario"] == usuario:
                return dict(row)
        return None

    async def get_active_by_username(self, usuario):
        row = await self.get_by_username(usuario)
        return row if row and row["activo"] else None

    async def list(self, page=1, page_size=50):
        items = [dict(r) for r in sorted(self.rows.values(), key=lambda r: -r["id"])]
        return {"items": items, "total": len(items), "page": 1, "pageSize": 50}

    async def create(self, user_in, password_hash, actor_id):
        row = self.add(**user_in, password_hash=password_hash, created_by=actor_id, updated_by=actor_id)
        return row["id"]

    async def update(self, user_id, values, actor_id):
        if user_id not in self.rows:
            return False
        self.rows[user_id].update(values, updated_by=actor_id)
        return True

    async def set_password(self, user_id, password_hash, actor_id):
        row = self.rows.get(user_id)
        if not row:
            return None
        row["password_hash"] = password_hash
        row["token_version"] += 1
        row["updated_by"] = actor_id
        return row["token_version"]

    async def increment_token_version(self, user_id):
        row = self.rows.get(user_id)
        if not row:
            return None
        row["token_version"] += 1
        return row["token_version"]

    async def delete(self, user_id):
        return self.rows.pop(user_id, None) is not None


@pytest.fixture
def user_repo(hasher):
    repo = FakeUserRepo()
    repo.add(usuario="admin", nombre="Admin", apellido="Sistema", rol="admin",
             password_hash=hasher.hash_sync("admin123"))
    repo.add(usuario="operador", nombre="Ana", apellido="Pérez", rol="usuario",
             password_hash=hasher.hash_sync("operador123"))
    return repo


@pytest.fixture
def app(settings):
    from sima.main import create_app

    return create_app(settings, connect_db=False)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def admin_headers(tokens, user_repo):
    pair = tokens.create_token_pair(build_identity(user_repo.rows[1]))
    return {"Authorization": f"Bearer {pair['accessToken']}"}


@pytest.fixture
def user_headers(tokens, user_repo):
    pair = tokens.create_token_pair(build_identity(user_repo.rows[2]))
    return {"Authorization": f"Bearer {pair['accessToken']}"}
