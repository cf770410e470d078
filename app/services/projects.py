"""Project creation and closure.

Closing a project writes a consolidated report ("acta de cierre") to the
project and files it as a completed summary order in history, both in one
transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.errors import NotFoundError
from app.models import ActiveWorkOrder, HistoricalWorkOrder, Project
from app.models.base import utcnow
from app.models.project import PROJECT_COMPLETED
from app.models.work_order import STATUS_COMPLETED
from app.schemas.project import ProjectCreate
from app.services.auth import AuthContext
from app.services.folio import allocate_folio
from app.services.work_orders import build_team

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "Sin descripción"
ADDRESS_PLACEHOLDER = "Dirección de Proyecto"
SUMMARY_PREFIX = "ACTA-"
_RULE = "-" * 50


def summary_order_id(project_id: str) -> str:
    return f"{SUMMARY_PREFIX}{project_id}"


async def create_project(db: AsyncSession, body: ProjectCreate, auth: AuthContext) -> Project:
    client = await crud.get_client(db, body.client_id)
    if client is None:
        raise NotFoundError("Cliente", body.client_id)
    team = await build_team(db, body.team or [{"id": auth.user_id, "name": auth.display_name}])
    fields = dict(
        name=body.name.strip(),
        client_id=client.id,
        client_name=client.display_name,
        team=team,
        created_by=auth.user_id,
    )
    if body.start_date:
        fields["start_date"] = body.start_date
    project = await crud.create_project(db, **fields)
    logger.info("Project %s created by %s", project.id, auth.user_id)
    return project


async def project_orders(db: AsyncSession, project_id: str) -> list[ActiveWorkOrder | HistoricalWorkOrder]:
    """Orders of a project, active partition first, each partition by folio.

    Summary records are left out so a re-run never reports its own acta.
    """
    orders: list = []
    for model in (ActiveWorkOrder, HistoricalWorkOrder):
        found = await crud.list_orders(db, model=model, project_id=project_id, include_summaries=False)
        orders.extend(sorted(found, key=lambda o: o.folio))
    return orders


def build_summary_text(project: Project, orders: list) -> str:
    lines = [
        f"ACTA DE CIERRE FINAL - PROYECTO: {project.name.upper()}",
        f"Cliente: {project.client_name}",
        f"Total de órdenes: {len(orders)}",
        _RULE,
        "Resumen consolidado de trabajos realizados:",
    ]
    lines += [
        f"{i + 1}. Folio #{o.folio}: {o.description or NO_DESCRIPTION}"
        for i, o in enumerate(orders)
    ]
    lines += [
        "",
        "Este documento certifica la entrega total y recepción conforme de todas "
        "las etapas del proyecto mencionado.",
    ]
    return "\n".join(lines)


async def close_project(db: AsyncSession, project_id: str, closed_by: str) -> dict:
    project = await crud.get_project(db, project_id)
    if project is None:
        raise NotFoundError("Proyecto", project_id, "El proyecto no existe.")

    orders = await project_orders(db, project_id)
    summary = build_summary_text(project, orders)
    now = utcnow()
    first = orders[0] if orders else None

    acta_id = summary_order_id(project_id)
    acta = await crud.get_historical_order(db, acta_id)
    stale = await crud.get_active_order(db, acta_id)
    fields = dict(
        project_id=project_id,
        is_project_summary=True,
        client_id=project.client_id,
        client_name=project.client_name,
        owner_id=closed_by,
        status=STATUS_COMPLETED,
        description=summary,
        address=first.address if first and first.address else ADDRESS_PLACEHOLDER,
        building=first.building if first else "",
        floor=first.floor if first else "",
        team=list(project.team or []),
        updated_at=now,
        updated_by=closed_by,
    )

    try:
        if acta is None:
            acta = HistoricalWorkOrder(id=acta_id, folio=await allocate_folio(db), **fields)
            db.add(acta)
        else:
            for key, value in fields.items():
                setattr(acta, key, value)
        if stale is not None:
            # An acta left open in the active partition is superseded.
            await db.delete(stale)

        project.status = PROJECT_COMPLETED
        project.end_date = now
        project.summary = summary
        project.updated_at = now
        project.updated_by = closed_by
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Closing project %s rolled back", project_id)
        raise

    logger.info("Project %s closed by %s with %d orders", project_id, closed_by, len(orders))
    return {"order_id": acta_id, "project_id": project_id, "order_count": len(orders), "summary": summary}
