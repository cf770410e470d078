"""Work order lifecycle: create, edit, complete, delete.

Open orders live in the active partition. Completing one moves it to the
historical partition in a single transaction; from then on it is read-only.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db import crud
from app.errors import AuthorizationError, NotFoundError, TransportError, ValidationError
from app.models import ActiveWorkOrder, HistoricalWorkOrder, Person
from app.models.base import utcnow
from app.models.work_order import STATUS_COMPLETED, STATUS_PENDING, is_completed, order_fields
from app.schemas.work_order import TeamMember, WorkOrderCreate, WorkOrderRead, WorkOrderUpdate
from app.services.auth import AuthContext
from app.services.email import send_work_order_completed_email
from app.services.folio import allocate_folio
from app.services.rut import validate_rut

logger = logging.getLogger(__name__)

_settings = get_settings()

LOCKED_MESSAGE = "completed orders cannot be modified"


async def build_team(db: AsyncSession, members: Iterable[TeamMember | dict]) -> list[dict]:
    """Normalize a team to an ordered list of ``{id, name}``.

    Ids are authoritative: duplicates are dropped and names are refreshed
    from the personnel directory when the person exists.
    """
    team: list[dict] = []
    seen: set[str] = set()
    for member in members:
        if isinstance(member, TeamMember):
            member = member.model_dump()
        member_id = member.get("id")
        if not member_id or member_id in seen:
            continue
        seen.add(member_id)
        person = await db.get(Person, member_id)
        team.append({"id": member_id, "name": person.full_name if person else member.get("name", "")})
    return team


def team_ids(order: ActiveWorkOrder | HistoricalWorkOrder) -> list[str]:
    return [m.get("id") for m in (order.team or []) if m.get("id")]


def can_view(auth: AuthContext, order: ActiveWorkOrder | HistoricalWorkOrder) -> bool:
    if auth.is_admin:
        return True
    return auth.user_id in (order.owner_id, order.technician_id) or auth.user_id in team_ids(order)


def to_read(order: ActiveWorkOrder | HistoricalWorkOrder) -> WorkOrderRead:
    partition = "historical" if isinstance(order, HistoricalWorkOrder) else "active"
    return WorkOrderRead.model_validate(order).model_copy(update={"partition": partition})


async def list_visible_orders(
    db: AsyncSession, auth: AuthContext, history: bool = False, search: str = "",
) -> list[ActiveWorkOrder | HistoricalWorkOrder]:
    model = HistoricalWorkOrder if history else ActiveWorkOrder
    orders = await crud.list_orders(db, model=model, search=search)
    return [o for o in orders if can_view(auth, o)]


async def get_visible_order(db: AsyncSession, order_id: str, auth: AuthContext):
    order = await crud.get_order(db, order_id)
    if order is None:
        raise NotFoundError("Orden", order_id, "La orden no existe.")
    if not can_view(auth, order):
        raise AuthorizationError("No tiene acceso a esta orden.")
    return order


async def create_order(db: AsyncSession, body: WorkOrderCreate, auth: AuthContext) -> ActiveWorkOrder:
    fields = body.model_dump(exclude={"team"})

    if body.client_id:
        client = await crud.get_client(db, body.client_id)
        if client is None:
            raise NotFoundError("Cliente", body.client_id)
        fields["client_name"] = fields["client_name"] or client.display_name
        fields["client_phone"] = fields["client_phone"] or client.phone
        fields["client_email"] = fields["client_email"] or client.email
        fields["address"] = fields["address"] or client.address

    if body.project_id and await crud.get_project(db, body.project_id) is None:
        raise NotFoundError("Proyecto", body.project_id)

    technician_id = fields["technician_id"] = body.technician_id or auth.user_id
    if not fields["tech_name"]:
        tech = await crud.get_person(db, technician_id)
        if tech is not None:
            fields["tech_name"] = tech.full_name
            fields["tech_national_id"] = fields["tech_national_id"] or tech.national_id

    fields.update(owner_id=auth.user_id, status=STATUS_PENDING, team=await build_team(db, body.team))
    try:
        order = await crud.create_work_order(db, **fields, folio=await allocate_folio(db))
    except IntegrityError:
        # Another order took the folio between allocation and insert.
        await db.rollback()
        logger.warning("Folio collision creating order for %s, allocating again", auth.user_id)
        try:
            order = await crud.create_work_order(db, **fields, folio=await allocate_folio(db))
        except IntegrityError:
            await db.rollback()
            raise ValidationError("No fue posible asignar un folio único.")
    logger.info("Work order %s created (folio %s) by %s", order.id, order.folio, auth.user_id)
    return order


async def update_order(
    db: AsyncSession, order_id: str, body: WorkOrderUpdate, auth: AuthContext,
) -> ActiveWorkOrder:
    order = await crud.get_active_order(db, order_id)
    if order is None:
        if await crud.get_historical_order(db, order_id) is not None:
            raise ValidationError(LOCKED_MESSAGE)
        raise NotFoundError("Orden", order_id, "La orden no existe.")
    if is_completed(order.status):
        raise ValidationError(LOCKED_MESSAGE)
    if not can_view(auth, order):
        raise AuthorizationError("No tiene acceso a esta orden.")

    changes = body.model_dump(exclude_unset=True, exclude_none=True, exclude={"team"})
    receiver_rut = changes.get("client_receiver_national_id")
    if receiver_rut and not validate_rut(receiver_rut):
        raise ValidationError("RUT de quien recibe inválido.")
    if body.team is not None:
        changes["team"] = await build_team(db, body.team)

    # Ids are authoritative; cached names follow them.
    if "client_id" in changes:
        client = await crud.get_client(db, changes["client_id"])
        if client is None:
            raise NotFoundError("Cliente", changes["client_id"])
        changes["client_name"] = client.display_name
    if "technician_id" in changes:
        tech = await crud.get_person(db, changes["technician_id"])
        if tech is not None:
            changes["tech_name"] = tech.full_name

    return await crud.update_work_order(db, order, updated_by=auth.user_id, **changes)


async def move_to_history(
    db: AsyncSession, order: ActiveWorkOrder, **overrides,
) -> HistoricalWorkOrder:
    """Copy ``order`` into the historical partition and delete it from the
    active one, committing both in one transaction.

    Signature token fields never survive the move.
    """
    order_id = order.id
    fields = order_fields(order) | overrides
    fields["signature_token"] = None
    fields["token_expiry"] = None
    record = HistoricalWorkOrder(**fields)
    try:
        db.add(record)
        await db.delete(order)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to move order %s to history", order_id)
        raise
    logger.info("Order %s (folio %s) moved to history", record.id, record.folio)
    return record


async def complete_order(db: AsyncSession, order_id: str, auth: AuthContext) -> dict:
    """Finalize an order signed on site. Returns data for the completion email."""
    order = await crud.get_active_order(db, order_id)
    if order is None:
        raise NotFoundError("Orden", order_id, "La orden no existe o ya fue procesada.")
    if not can_view(auth, order):
        raise AuthorizationError("No tiene acceso a esta orden.")
    if not order.technician_signature:
        raise ValidationError("Falta la firma del técnico.")
    if not order.client_signature:
        raise ValidationError("Falta la firma del cliente.")
    if not validate_rut(order.client_receiver_national_id):
        raise ValidationError("RUT de quien recibe inválido.")

    now = utcnow()
    record = await move_to_history(
        db, order,
        status=STATUS_COMPLETED,
        signature_date=order.signature_date or now,
        updated_at=now,
        updated_by=auth.user_id,
    )
    return completion_notice(record)


def completion_notice(record: HistoricalWorkOrder) -> dict:
    return {
        "order_id": record.id,
        "folio": record.folio,
        "to": record.client_receiver_email,
        "client_name": record.client_name,
        "order_date": _format_date(record.created_at),
        "summary": record.description,
        "link": f"{_settings.app_url}/ordenes/{record.id}",
    }


def _format_date(value: datetime | None) -> str:
    return value.strftime("%d-%m-%Y") if value else ""


def notify_completion(to: str, client_name: str, folio: int, order_date: str, summary: str, link: str, **_) -> None:
    """Send the completion summary. Failures are logged only; the order stays completed."""
    if not to:
        return
    try:
        result = send_work_order_completed_email(to, client_name, folio, order_date, summary, link)
    except TransportError as exc:
        logger.error("Completion email for folio %s to %s failed: %s", folio, to, exc.message)
        return
    if not result.success:
        logger.info("Completion email for folio %s was not sent", folio)


async def delete_order(db: AsyncSession, order_id: str, auth: AuthContext) -> None:
    order = await crud.get_active_order(db, order_id)
    if order is None:
        raise NotFoundError("Orden", order_id, "La orden no existe.")
    if not (auth.is_admin or auth.user_id == order.owner_id):
        raise AuthorizationError("Solo el creador o un administrador puede eliminar la orden.")
    await crud.delete_work_order(db, order)
    logger.info("Work order %s (folio %s) deleted by %s", order_id, order.folio, auth.user_id)
