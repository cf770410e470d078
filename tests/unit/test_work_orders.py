import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.db import crud
from app.errors import AuthorizationError, NotFoundError, TransportError, ValidationError
from app.models import ActiveWorkOrder, HistoricalWorkOrder
from app.models.work_order import STATUS_COMPLETED, STATUS_PENDING
from app.schemas import WorkOrderCreate, WorkOrderUpdate
from app.services import work_orders

from factories import ADMIN, add_order, add_person, ctx

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


async def test_create_order_defaults(db):
    tech = await add_person(db, "Juan Pérez")
    client = await crud.create_client(
        db, display_name="Edificio Sol", national_id="11.111.111-1",
        address="Av. Sol 1", email="adm@sol.cl",
    )
    order = await work_orders.create_order(db, WorkOrderCreate(client_id=client.id), ctx(tech.id))

    assert order.status == STATUS_PENDING
    assert 100000 <= order.folio <= 999999
    assert order.owner_id == tech.id
    assert order.technician_id == tech.id
    assert order.tech_name == "Juan Pérez"
    assert order.client_name == "Edificio Sol"
    assert order.address == "Av. Sol 1"


async def test_create_order_reallocates_folio_after_insert_collision(db, monkeypatch):
    await add_order(db, 100001)
    folios = iter([100001, 100002])

    async def racing_allocate(db):
        return next(folios)

    monkeypatch.setattr(work_orders, "allocate_folio", racing_allocate)
    order = await work_orders.create_order(db, WorkOrderCreate(), ctx("p1"))
    assert order.folio == 100002


async def test_create_order_gives_up_after_second_collision(db, monkeypatch):
    await add_order(db, 100001)

    async def taken(db):
        return 100001

    monkeypatch.setattr(work_orders, "allocate_folio", taken)
    with pytest.raises(ValidationError, match="folio"):
        await work_orders.create_order(db, WorkOrderCreate(), ctx("p1"))


async def test_create_order_unknown_client(db):
    with pytest.raises(NotFoundError):
        await work_orders.create_order(db, WorkOrderCreate(client_id="nope"), ADMIN)


async def test_build_team_dedupes_and_refreshes_names(db):
    tech = await add_person(db, "Juan Pérez")
    team = await work_orders.build_team(db, [
        {"id": tech.id, "name": "Juanito"},
        {"id": "external", "name": "Contratista"},
        {"id": tech.id, "name": "otra vez"},
        {"id": "", "name": "sin id"},
    ])
    assert team == [{"id": tech.id, "name": "Juan Pérez"}, {"id": "external", "name": "Contratista"}]


async def test_visibility_rules(db):
    order = await add_order(db, 100001, owner_id="p1", technician_id="p2", team=[{"id": "p3", "name": "C"}])
    assert work_orders.can_view(ADMIN, order)
    assert work_orders.can_view(ctx("p1"), order)
    assert work_orders.can_view(ctx("p2"), order)
    assert work_orders.can_view(ctx("p3"), order)
    assert not work_orders.can_view(ctx("p4", "supervisor"), order)


async def test_list_visible_orders_filters_by_caller(db):
    await add_order(db, 100001, owner_id="p1")
    await add_order(db, 100002, owner_id="p2")
    mine = await work_orders.list_visible_orders(db, ctx("p1"))
    assert [o.folio for o in mine] == [100001]
    assert len(await work_orders.list_visible_orders(db, ADMIN)) == 2


async def test_update_order(db):
    order = await add_order(db, 100001, owner_id="p1")
    updated = await work_orders.update_order(
        db, order.id, WorkOrderUpdate(description="Cambio de patch panel", floor=None), ctx("p1"),
    )
    assert updated.description == "Cambio de patch panel"
    assert updated.updated_by == "p1"


async def test_update_refreshes_names_from_new_ids(db):
    tech = await add_person(db, "Ana Rojas")
    client = await crud.create_client(db, display_name="Edificio Luna", national_id="11.111.111-1")
    order = await add_order(db, 100001, client_id="old", client_name="Edificio Sol", tech_name="Juan Pérez")

    updated = await work_orders.update_order(
        db, order.id, WorkOrderUpdate(client_id=client.id, technician_id=tech.id), ADMIN,
    )

    assert updated.client_name == "Edificio Luna"
    assert updated.tech_name == "Ana Rojas"


async def test_update_rejects_unknown_client(db):
    order = await add_order(db, 100001)
    with pytest.raises(NotFoundError):
        await work_orders.update_order(db, order.id, WorkOrderUpdate(client_id="nope"), ADMIN)


async def test_update_completed_order_is_locked(db):
    done = await add_order(db, 100001, model=HistoricalWorkOrder, status=STATUS_COMPLETED)
    with pytest.raises(ValidationError, match="completed orders cannot be modified"):
        await work_orders.update_order(db, done.id, WorkOrderUpdate(description="x"), ADMIN)

    legacy = await add_order(db, 100002, status="Completado")
    with pytest.raises(ValidationError, match="completed orders cannot be modified"):
        await work_orders.update_order(db, legacy.id, WorkOrderUpdate(description="x"), ADMIN)


async def test_update_rejects_bad_receiver_rut(db):
    order = await add_order(db, 100001)
    with pytest.raises(ValidationError):
        await work_orders.update_order(
            db, order.id, WorkOrderUpdate(client_receiver_national_id="12.345.678-9"), ADMIN,
        )


async def test_update_requires_visibility(db):
    order = await add_order(db, 100001, owner_id="p1")
    with pytest.raises(AuthorizationError):
        await work_orders.update_order(db, order.id, WorkOrderUpdate(description="x"), ctx("p9"))


async def test_complete_requires_signatures(db):
    order = await add_order(db, 100001, technician_signature=SIGNATURE)
    with pytest.raises(ValidationError, match="firma del cliente"):
        await work_orders.complete_order(db, order.id, ADMIN)


async def test_complete_requires_valid_receiver_rut(db):
    order = await add_order(
        db, 100001, technician_signature=SIGNATURE, client_signature=SIGNATURE,
        client_receiver_national_id="12.345.678-9",
    )
    with pytest.raises(ValidationError, match="RUT"):
        await work_orders.complete_order(db, order.id, ADMIN)


async def test_complete_moves_order_to_history(db):
    order = await add_order(
        db, 100001, client_name="Edificio Sol", description="Tendido de fibra",
        technician_signature=SIGNATURE, client_signature=SIGNATURE,
        client_receiver_name="María Soto", client_receiver_national_id="11.111.111-1",
        client_receiver_email="maria@sol.cl", signature_token="abc",
    )
    order_id = order.id

    notice = await work_orders.complete_order(db, order_id, ADMIN)

    assert await crud.get_active_order(db, order_id) is None
    record = await crud.get_historical_order(db, order_id)
    assert record.status == STATUS_COMPLETED
    assert record.folio == 100001
    assert record.signature_date is not None
    assert record.signature_token is None
    assert notice["to"] == "maria@sol.cl"
    assert notice["summary"] == "Tendido de fibra"


async def test_move_to_history_rolls_back_on_conflict(db):
    order = await add_order(db, 100001)
    order_id = order.id
    clash = HistoricalWorkOrder(id=order_id, folio=100002)
    db.add(clash)
    await db.commit()
    db.expunge(clash)

    with pytest.raises(SQLAlchemyError):
        await work_orders.move_to_history(db, order, status=STATUS_COMPLETED)

    result = await db.execute(
        ActiveWorkOrder.__table__.select().where(ActiveWorkOrder.id == order_id)
    )
    assert result.first() is not None


def test_notify_completion_swallows_transport_errors(monkeypatch, caplog):
    def boom(*args, **kwargs):
        raise TransportError("down")

    monkeypatch.setattr(work_orders, "send_work_order_completed_email", boom)
    work_orders.notify_completion(
        to="maria@sol.cl", client_name="Sol", folio=1, order_date="", summary="", link="",
    )
    assert "down" in caplog.text


async def test_delete_order_rules(db):
    order = await add_order(db, 100001, owner_id="p1", team=[{"id": "p2", "name": "B"}])
    with pytest.raises(AuthorizationError):
        await work_orders.delete_order(db, order.id, ctx("p2"))
    await work_orders.delete_order(db, order.id, ctx("p1"))
    assert await crud.get_active_order(db, order.id) is None

    done = await add_order(db, 100002, model=HistoricalWorkOrder)
    with pytest.raises(NotFoundError):
        await work_orders.delete_order(db, done.id, ADMIN)
