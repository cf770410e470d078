import pytest

from app.db import crud
from app.errors import NotFoundError
from app.models import HistoricalWorkOrder, Project
from app.models.project import PROJECT_COMPLETED
from app.models.work_order import STATUS_COMPLETED
from app.schemas import ProjectCreate
from app.services import projects
from app.services.flows import run_flow

from factories import ADMIN, add_order, add_person


async def _project(db, project_id="P", **fields):
    fields.setdefault("name", "Torre Norte")
    fields.setdefault("client_name", "Edificio Sol")
    project = Project(id=project_id, **fields)
    db.add(project)
    await db.commit()
    return project


async def test_close_project_end_to_end(db):
    await _project(db, team=[{"id": "t1", "name": "Juan Pérez"}])
    await add_order(db, 100, model=HistoricalWorkOrder, project_id="P", description="A", address="Calle 1")
    await add_order(db, 200, model=HistoricalWorkOrder, project_id="P")

    result = await run_flow("close_project", projects.close_project(db, "P", "admin-1"))

    assert result.success is True
    assert result.data["order_id"] == "ACTA-P"
    summary = result.data["summary"]
    assert "1. Folio #100: A" in summary
    assert "2. Folio #200: Sin descripción" in summary
    assert "TORRE NORTE" in summary
    assert "Edificio Sol" in summary
    assert "Total de órdenes: 2" in summary

    project = await crud.get_project(db, "P")
    assert project.status == PROJECT_COMPLETED
    assert project.end_date is not None
    assert project.summary == summary

    acta = await crud.get_historical_order(db, "ACTA-P")
    assert acta.is_project_summary is True
    assert acta.status == STATUS_COMPLETED
    assert acta.address == "Calle 1"
    assert acta.team == [{"id": "t1", "name": "Juan Pérez"}]
    assert 100000 <= acta.folio <= 999999


async def test_active_orders_listed_first(db):
    await _project(db)
    await add_order(db, 100, model=HistoricalWorkOrder, project_id="P", description="hecha")
    await add_order(db, 900, project_id="P", description="abierta")
    await add_order(db, 800, project_id="P", description="otra abierta")

    data = await projects.close_project(db, "P", "admin-1")

    lines = [line for line in data["summary"].splitlines() if "Folio #" in line]
    assert lines == [
        "1. Folio #800: otra abierta",
        "2. Folio #900: abierta",
        "3. Folio #100: hecha",
    ]


async def test_rerun_overwrites_summary_record(db):
    await _project(db)
    await add_order(db, 100, model=HistoricalWorkOrder, project_id="P", description="A")

    first = await projects.close_project(db, "P", "admin-1")
    folio = (await crud.get_historical_order(db, "ACTA-P")).folio
    second = await projects.close_project(db, "P", "admin-1")

    assert second["order_count"] == 1
    assert first["summary"] == second["summary"]
    summaries = await crud.list_orders(db, model=HistoricalWorkOrder, project_id="P")
    assert [o.id for o in summaries if o.is_project_summary] == ["ACTA-P"]
    assert (await crud.get_historical_order(db, "ACTA-P")).folio == folio


async def test_close_without_orders_uses_placeholder_address(db):
    await _project(db)
    data = await projects.close_project(db, "P", "admin-1")
    assert data["order_count"] == 0
    acta = await crud.get_historical_order(db, "ACTA-P")
    assert acta.address == "Dirección de Proyecto"


async def test_stale_active_acta_is_replaced(db):
    await _project(db)
    await add_order(db, 555555, id="ACTA-P", project_id="P", is_project_summary=True, status="Pendiente")

    await projects.close_project(db, "P", "admin-1")

    assert await crud.get_active_order(db, "ACTA-P") is None
    assert await crud.get_historical_order(db, "ACTA-P") is not None


async def test_close_missing_project(db):
    with pytest.raises(NotFoundError):
        await projects.close_project(db, "nope", "admin-1")
    result = await run_flow("close_project", projects.close_project(db, "nope", "admin-1"))
    assert result.model_dump() == {"success": False, "error": "El proyecto no existe.", "data": {}}
    assert result.status_code == 404


async def test_create_project_copies_client_and_team(db):
    tech = await add_person(db, "Juan Pérez")
    client = await crud.create_client(db, display_name="Edificio Sol", national_id="11.111.111-1")

    project = await projects.create_project(
        db, ProjectCreate(name=" Torre Norte ", client_id=client.id, team=[{"id": tech.id}]), ADMIN,
    )

    assert project.name == "Torre Norte"
    assert project.client_name == "Edificio Sol"
    assert project.status == "Active"
    assert project.team == [{"id": tech.id, "name": "Juan Pérez"}]
    assert project.created_by == ADMIN.user_id
