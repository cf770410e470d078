"""CRUD operations for the record store."""

from __future__ import annotations

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    User, Person, Client, Project, ActiveWorkOrder, HistoricalWorkOrder,
)
from app.models.base import utcnow


# ── Users ─────────────────────────────────────────────────

async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalars().first()


# ── Clients ───────────────────────────────────────────────

async def create_client(db: AsyncSession, **fields) -> Client:
    client = Client(**fields)
    db.add(client)
    await db.commit()
    await db.refresh(client)
    return client


async def get_client(db: AsyncSession, client_id: str) -> Client | None:
    return await db.get(Client, client_id)


async def list_clients(db: AsyncSession, search: str = "", active_only: bool = False) -> list[Client]:
    query = select(Client).order_by(Client.display_name)
    if active_only:
        query = query.where(Client.status == "active")
    if search:
        term = f"%{search}%"
        query = query.where(or_(Client.display_name.ilike(term), Client.national_id.ilike(term)))
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_client(db: AsyncSession, client: Client, updated_by: str = "", **kwargs) -> Client:
    for k, v in kwargs.items():
        if v is not None:
            setattr(client, k, v)
    client.updated_at = utcnow()
    client.updated_by = updated_by
    await db.commit()
    await db.refresh(client)
    return client


# ── Personnel ─────────────────────────────────────────────

async def create_person(db: AsyncSession, **fields) -> Person:
    person = Person(**fields)
    db.add(person)
    await db.commit()
    await db.refresh(person)
    return person


async def get_person(db: AsyncSession, person_id: str) -> Person | None:
    return await db.get(Person, person_id)


async def list_personnel(db: AsyncSession, search: str = "", active_only: bool = False) -> list[Person]:
    query = select(Person).order_by(Person.full_name)
    if active_only:
        query = query.where(Person.status == "active")
    if search:
        term = f"%{search}%"
        query = query.where(or_(Person.full_name.ilike(term), Person.national_id.ilike(term)))
    result = await db.execute(query)
    return list(result.scalars().all())


async def find_personnel_by_name(db: AsyncSession, full_name: str) -> list[Person]:
    """Exact-match lookup on full name."""
    result = await db.execute(select(Person).where(Person.full_name == full_name))
    return list(result.scalars().all())


async def update_person(db: AsyncSession, person: Person, updated_by: str = "", **kwargs) -> Person:
    for k, v in kwargs.items():
        if v is not None:
            setattr(person, k, v)
    person.updated_at = utcnow()
    person.updated_by = updated_by
    await db.commit()
    await db.refresh(person)
    return person


# ── Projects ──────────────────────────────────────────────

async def create_project(db: AsyncSession, **fields) -> Project:
    project = Project(**fields)
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


async def get_project(db: AsyncSession, project_id: str) -> Project | None:
    return await db.get(Project, project_id)


async def list_projects(db: AsyncSession, status: str | None = None) -> list[Project]:
    query = select(Project).order_by(Project.start_date.desc())
    if status:
        query = query.where(Project.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


# ── Work orders ───────────────────────────────────────────

async def create_work_order(db: AsyncSession, **fields) -> ActiveWorkOrder:
    order = ActiveWorkOrder(**fields)
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


async def get_active_order(db: AsyncSession, order_id: str) -> ActiveWorkOrder | None:
    return await db.get(ActiveWorkOrder, order_id)


async def get_historical_order(db: AsyncSession, order_id: str) -> HistoricalWorkOrder | None:
    return await db.get(HistoricalWorkOrder, order_id)


async def get_order(db: AsyncSession, order_id: str) -> ActiveWorkOrder | HistoricalWorkOrder | None:
    """Look up an order in the active partition, then in history."""
    order = await get_active_order(db, order_id)
    if order is None:
        order = await get_historical_order(db, order_id)
    return order


async def list_orders(
    db: AsyncSession,
    model: type[ActiveWorkOrder] | type[HistoricalWorkOrder] = ActiveWorkOrder,
    search: str = "",
    project_id: str | None = None,
    include_summaries: bool = True,
) -> list:
    query = select(model).order_by(model.folio.desc())
    if project_id is not None:
        query = query.where(model.project_id == project_id)
    if not include_summaries:
        query = query.where(model.is_project_summary == False)  # noqa: E712
    result = await db.execute(query)
    orders = list(result.scalars().all())
    if search:
        term = search.lower()
        orders = [
            o for o in orders
            if term in str(o.folio) or term in (o.client_name or "").lower()
        ]
    return orders


async def update_work_order(db: AsyncSession, order: ActiveWorkOrder, updated_by: str = "", **kwargs) -> ActiveWorkOrder:
    for k, v in kwargs.items():
        setattr(order, k, v)
    order.updated_at = utcnow()
    order.updated_by = updated_by
    await db.commit()
    await db.refresh(order)
    return order


async def delete_work_order(db: AsyncSession, order: ActiveWorkOrder) -> None:
    await db.delete(order)
    await db.commit()
