"""Tests for RegistroService: references, details and duplication."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from asyncpg import ForeignKeyViolationError

from sima.core.exceptions import NotFoundException, ReferenceException, ValidationException
from sima.repositories.registro_repo import RegistroRepository
from sima.services.registro_service import RegistroService

ACTOR = {"id": 2, "usuario": "operador", "rol": "usuario"}

STORED = {
    "id": 15,
    "persona_id": 4,
    "tipo_delito": "Robo agravado",
    "lugar": "Av. Siempre Viva 742",
    "estado": "En trámite",
    "juzgado": "Juzgado N° 3",
    "detalle": "Sustracción de vehículo",
    "created_by": 1,
    "updated_by": 1,
    "deleted_at": None,
}


@pytest.fixture
def repo():
    repo = MagicMock(spec=RegistroRepository)
    repo.insert.return_value = 16
    return repo


@pytest.fixture
def service(repo, audit):
    return RegistroService(repo, audit)


class TestCreate:
    async def test_valid(self, service, repo):
        assert await service.create({"persona_id": "4", "tipo_delito": "Hurto"}, ACTOR) == 16
        values, actor_id = repo.insert.await_args.args
        assert values["persona_id"] == 4
        assert actor_id == 2

    async def test_missing_persona_reference(self, service, repo):
        repo.insert.side_effect = ForeignKeyViolationError("violates foreign key constraint")
        with pytest.raises(ReferenceException):
            await service.create({"persona_id": 999, "tipo_delito": "Hurto"}, ACTOR)

    @pytest.mark.parametrize("payload,field", [
        ({"tipo_delito": "Hurto"}, "persona_id"),
        ({"persona_id": 0, "tipo_delito": "Hurto"}, "persona_id"),
        ({"persona_id": 4, "tipo_delito": "H"}, "tipo_delito"),
    ])
    async def test_shape(self, service, payload, field):
        with pytest.raises(ValidationException) as exc_info:
            await service.create(payload, ACTOR)
        assert field in {d["field"] for d in exc_info.value.details}


class TestDetails:
    async def test_linked_person_attached(self, service, repo):
        repo.get_by_id_any.return_value = dict(STORED)
        repo.get_active_persona.return_value = {"id": 4, "nombre": "Ana"}
        details = await service.get_details(15)
        assert details["persona"] == {"id": 4, "nombre": "Ana"}

    async def test_soft_deleted_person_is_null(self, service, repo):
        repo.get_by_id_any.return_value = dict(STORED)
        repo.get_active_persona.return_value = None
        details = await service.get_details(15)
        assert details["persona"] is None
        assert details["tipo_delito"] == "Robo agravado"


class TestDuplicate:
    async def test_copies_business_fields_only(self, service, repo, audit_repo):
        repo.get_by_id.return_value = dict(STORED)
        assert await service.duplicate(15, ACTOR) == 16

        values, actor_id = repo.insert.await_args.args
        assert values == {
            "persona_id": 4,
            "tipo_delito": "Robo agravado",
            "lugar": "Av. Siempre Viva 742",
            "estado": "En trámite",
            "juzgado": "Juzgado N° 3",
            "detalle": "Sustracción de vehículo",
        }
        assert actor_id == 2
        assert audit_repo.insert.await_args.kwargs["entity_id"] == 16

    async def test_unknown_source(self, service, repo):
        repo.get_by_id.return_value = None
        with pytest.raises(NotFoundException):
            await service.duplicate(15, ACTOR)
        repo.insert.assert_not_awaited()


class TestSearch:
    async def test_paginated(self, service, repo):
        criteria = object()
        repo.search_criteria.return_value = criteria
        repo.paginate.return_value = {"items": [], "total": 0, "page": 1, "pageSize": 10}
        await service.search_registros(persona_id=4, q="robo", page=1, page_size=10)
        repo.search_criteria.assert_called_once_with(persona_id=4, q="robo")
        repo.paginate.assert_awaited_once_with(criteria, 1, 10)

    async def test_export_is_capped(self, repo, audit):
        service = RegistroService(repo, audit, export_limit=50)
        repo.export_rows.return_value = []
        await service.get_for_export(q="robo")
        assert repo.export_rows.await_args.args[1] == 50
