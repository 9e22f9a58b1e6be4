"""HTTP-level tests: authentication gate, role guard, error envelope and routing.

Services are swapped through dependency overrides so no database is needed.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from sima.api import deps
from sima.repositories.persona_repo import PersonaRepository
from sima.repositories.registro_repo import RegistroRepository
from sima.services.auth_service import AuthService
from sima.services.persona_service import PersonaService
from sima.services.registro_service import RegistroService

PERSONA = {
    "nombre": "María",
    "apellido": "González",
    "dni": "30111222",
    "comisaria": "Comisaría 3ª",
}


@pytest.fixture
def auth_svc(user_repo, hasher, tokens, audit):
    return AuthService(user_repo, hasher, tokens, audit)


@pytest.fixture
def persona_conn():
    conn = AsyncMock()
    conn.fetchval.return_value = 0
    conn.fetch.return_value = []
    conn.fetchrow.return_value = None
    return conn


@pytest.fixture
def persona_service(persona_conn, audit):
    return PersonaService(PersonaRepository(persona_conn), audit)


@pytest.fixture
def registro_repo():
    return MagicMock(spec=RegistroRepository)


@pytest.fixture
def wired(app, auth_svc, persona_service, registro_repo, audit):
    app.dependency_overrides[deps.get_auth_service] = lambda: auth_svc
    app.dependency_overrides[deps.get_persona_service] = lambda: persona_service
    app.dependency_overrides[deps.get_registro_service] = lambda: RegistroService(registro_repo, audit)
    app.dependency_overrides[deps.get_audit_service] = lambda: audit
    yield app
    app.dependency_overrides.clear()


# ── Authentication gate ─────────────────────────────────────────────


class TestAuthGate:
    def test_missing_header(self, client, wired):
        resp = client.get("/api/personas")
        assert resp.status_code == 401
        body = resp.json()
        assert body["error"] is True
        assert body["code"] == "UNAUTHORIZED"

    def test_garbage_token(self, client, wired):
        resp = client.get("/api/personas", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_refresh_token_is_not_an_access_token(self, client, wired, tokens, user_repo):
        from sima.core.security import build_identity

        pair = tokens.create_token_pair(build_identity(user_repo.rows[1]))
        resp = client.get("/api/personas", headers={"Authorization": f"Bearer {pair['refreshToken']}"})
        assert resp.status_code == 401

    def test_non_admin_forbidden(self, client, wired, user_headers):
        resp = client.get("/api/usuarios", headers=user_headers)
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    def test_admin_allowed(self, client, wired, admin_headers):
        resp = client.get("/api/usuarios", headers=admin_headers)
        assert resp.status_code == 200
        assert all("password_hash" not in u for u in resp.json()["items"])

    def test_health_is_public(self, client):
        assert client.get("/api/health").json() == {"ok": True}


# ── Auth endpoints ─────────────────────────────────────────────


class TestAuthEndpoints:
    def test_login_with_seeded_admin(self, client, wired):
        resp = client.post("/api/auth/login", json={"usuario": "admin", "password": "admin123"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["accessToken"] and body["refreshToken"]

    def test_login_bad_shape(self, client, wired):
        resp = client.post("/api/auth/login", json={"usuario": "ad", "password": "x"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    def test_login_bad_password(self, client, wired):
        resp = client.post("/api/auth/login", json={"usuario": "admin", "password": "incorrecta"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "INVALID_CREDENTIALS"

    def test_refresh_after_admin_password_change(self, client, wired, admin_headers):
        login = client.post("/api/auth/login", json={"usuario": "operador", "password": "operador123"}).json()

        changed = client.put("/api/usuarios/2/password", json={"nueva": "otraClave99"}, headers=admin_headers)
        assert changed.status_code == 200

        resp = client.post("/api/auth/refresh", json={"refreshToken": login["refreshToken"]})
        assert resp.status_code == 401
        assert resp.json()["code"] == "INVALID_TOKEN"

    def test_refresh_missing_token(self, client, wired):
        resp = client.post("/api/auth/refresh", json={})
        assert resp.status_code == 400

    def test_logout(self, client, wired):
        assert client.post("/api/auth/logout").json() == {"ok": True}


# ── Users ─────────────────────────────────────────────


class TestUsuarios:
    def test_own_profile(self, client, wired, user_headers):
        resp = client.get("/api/usuarios/me/profile", headers=user_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["usuario"] == "operador"
        assert "token_version" not in body

    def test_change_own_password(self, client, wired, user_headers, user_repo):
        resp = client.put("/api/usuarios/me/password",
                          json={"actual": "operador123", "nueva": "nuevaClave9"}, headers=user_headers)
        assert resp.status_code == 200
        assert user_repo.rows[2]["token_version"] == 1

    def test_create_returns_temp_password(self, client, wired, admin_headers):
        resp = client.post("/api/usuarios", headers=admin_headers, json={
            "usuario": "jperez", "nombre": "Juan", "apellido": "Pérez", "rol": "usuario",
        })
        assert resp.status_code == 201
        body = resp.json()
        assert len(body["tempPassword"]) == 12
        assert body["id"]

    def test_self_delete_blocked(self, client, wired, admin_headers, user_repo):
        resp = client.delete("/api/usuarios/1", headers=admin_headers)
        assert resp.status_code == 400
        assert 1 in user_repo.rows

    def test_delete_other_user(self, client, wired, admin_headers, user_repo):
        assert client.delete("/api/usuarios/2", headers=admin_headers).status_code == 200
        assert 2 not in user_repo.rows

    def test_revoke_tokens(self, client, wired, admin_headers, user_repo):
        assert client.post("/api/usuarios/2/revoke-tokens", headers=admin_headers).status_code == 200
        assert user_repo.rows[2]["token_version"] == 1

    def test_revoked_access_token_lives_until_expiry(self, client, wired, admin_headers):
        login = client.post("/api/auth/login", json={"usuario": "operador", "password": "operador123"}).json()
        old_headers = {"Authorization": f"Bearer {login['accessToken']}"}

        assert client.post("/api/usuarios/2/revoke-tokens", headers=admin_headers).status_code == 200

        assert client.get("/api/usuarios/me/profile", headers=old_headers).status_code == 200
        resp = client.post("/api/auth/refresh", json={"refreshToken": login["refreshToken"]})
        assert resp.status_code == 401
        assert resp.json()["code"] == "INVALID_TOKEN"


# ── Personas) ─────────────────────────────────────────────


class TestPersonas:
    def test_invalid_dni_rejected_with_field_details(self, client, wired, user_headers, persona_conn):
        resp = client.post("/api/personas", json={**PERSONA, "dni": "12ab"}, headers=user_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert any(d["field"] == "dni" for d in body["details"])
        persona_conn.fetchval.assert_not_awaited()

    def test_pagination_is_clamped(self, client, wired, user_headers, persona_conn):
        persona_conn.fetchval.return_value = 3
        resp = client.get("/api/personas?page=0&pageSize=500", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json() == {"items": [], "total": 3, "page": 1, "pageSize": 100}

    def test_default_page(self, client, wired, user_headers):
        body = client.get("/api/personas", headers=user_headers).json()
        assert body["page"] == 1
        assert body["pageSize"] == 10

    def test_create_json(self, client, wired, user_headers, persona_conn):
        persona_conn.fetchval.return_value = 55
        resp = client.post("/api/personas", json=PERSONA, headers=user_headers)
        assert resp.status_code == 201
        assert resp.json() == {"id": 55}

    def test_create_multipart_with_photos(self, client, wired, user_headers, persona_conn, settings):
        persona_conn.fetchval.return_value = 56
        resp = client.post(
            "/api/personas",
            data=PERSONA,
            files=[("fotos", ("frente.jpg", b"jpegdata", "image/jpeg")),
                   ("fotos", ("perfil.png", b"pngdata", "image/png"))],
            headers=user_headers,
        )
        assert resp.status_code == 201

        insert_sql, *args = persona_conn.fetchval.await_args_list[0].args
        assert insert_sql.startswith("INSERT INTO personas_registradas")
        refs = [a for a in args if isinstance(a, list)][0]
        assert len(refs) == 2
        assert all(r.startswith("/uploads/") for r in refs)

    def test_bad_photo_extension(self, client, wired, user_headers):
        resp = client.post(
            "/api/personas",
            data=PERSONA,
            files=[("fotos", ("script.sh", b"#!/bin/sh", "text/plain"))],
            headers=user_headers,
        )
        assert resp.status_code == 400

    def test_duplicate_dni_conflict(self, client, wired, user_headers, persona_conn):
        persona_conn.fetchrow.return_value = {"id": 3, "dni": "30111222"}
        resp = client.post("/api/personas", json=PERSONA, headers=user_headers)
        assert resp.status_code == 409

    def test_unknown_persona(self, client, wired, user_headers):
        resp = client.get("/api/personas/999", headers=user_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Persona no encontrado"

    def test_csv_export(self, client, wired, user_headers, persona_conn):
        persona_conn.fetch.return_value = [{"id": 1, "apellido": "Gómez", "nombre": "Ana", "dni": "30111222"}]
        resp = client.get("/api/personas?format=csv", headers=user_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="personas.csv"' in resp.headers["content-disposition"]
        assert resp.content.startswith("\ufeff".encode("utf-8"))


# ── Registros ─────────────────────────────────────────────


class TestRegistros:
    def test_duplicate(self, client, wired, user_headers, registro_repo):
        registro_repo.get_by_id.return_value = {"id": 15, "persona_id": 4, "tipo_delito": "Robo"}
        registro_repo.insert.return_value = 16
        resp = client.post("/api/registros/15/duplicate", headers=user_headers)
        assert resp.status_code == 201
        assert resp.json() == {"id": 16}

    def test_delete_missing(self, client, wired, user_headers, registro_repo):
        registro_repo.soft_delete.return_value = False
        assert client.delete("/api/registros/15", headers=user_headers).status_code == 404


# ── Error envelope ─────────────────────────────────────────────


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        resp = client.get("/api/nada")
        assert resp.status_code == 404
        assert resp.json()["code"] == "ROUTE_NOT_FOUND"

    def test_bad_path_parameter(self, client, wired, user_headers):
        resp = client.get("/api/personas/abc", headers=user_headers)
        assert resp.status_code == 400

    def test_unexpected_error_is_500(self, client, wired, user_headers, registro_repo):
        registro_repo.get_by_id_any.side_effect = RuntimeError("boom")
        resp = client.get("/api/registros/1", headers=user_headers)
        assert resp.status_code == 500
        assert resp.json()["code"] == "INTERNAL_ERROR"

    def test_unexpected_error_is_counted_in_metrics(self, client, wired, user_headers, registro_repo):
        registro_repo.get_by_id_any.side_effect = RuntimeError("boom")
        assert client.get("/api/registros/1", headers=user_headers).status_code == 500

        recorded = wired.state.metrics.requests[-1]
        assert recorded.path == "/api/registros/1"
        assert recorded.status_code == 500
        assert recorded.user_id == 2

    def test_metrics_for_admin(self, client, wired, admin_headers):
        client.get("/api/health")
        resp = client.get("/api/metrics", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["total"] >= 1
