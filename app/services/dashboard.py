"""Dashboard aggregation: order counts by day, client and technician."""

from __future__ import annotations

from collections import Counter
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.models import ActiveWorkOrder, Client, HistoricalWorkOrder, Person, Project
from app.models.base import as_utc, utcnow
from app.models.project import PROJECT_ACTIVE
from app.models.work_order import STATUS_COMPLETED, STATUS_PENDING_SIGNATURE, normalize_status
from app.schemas.dashboard import CountItem, DashboardRead, StatusTotals
from app.services.auth import AuthContext
from app.services.work_orders import can_view


def _items(counter: Counter, limit: int | None = None) -> list[CountItem]:
    return [CountItem(label=k, count=v) for k, v in counter.most_common(limit)]


async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar_one()


async def build_dashboard(db: AsyncSession, auth: AuthContext, days: int = 30, top: int = 10) -> DashboardRead:
    orders = []
    for model in (ActiveWorkOrder, HistoricalWorkOrder):
        orders += [o for o in await crud.list_orders(db, model=model, include_summaries=False) if can_view(auth, o)]

    since = (utcnow() - timedelta(days=days - 1)).date()
    by_day: Counter = Counter()
    by_client: Counter = Counter()
    by_technician: Counter = Counter()
    totals = StatusTotals()

    for order in orders:
        created = as_utc(order.created_at).date()
        if created >= since:
            by_day[created.isoformat()] += 1
        by_client[order.client_name or "Sin cliente"] += 1

        names = {m.get("name") for m in (order.team or []) if m.get("name")}
        if order.tech_name:
            names.add(order.tech_name)
        for name in names:
            by_technician[name] += 1

        status = normalize_status(order.status)
        if status == STATUS_COMPLETED:
            totals.completed += 1
        elif status == STATUS_PENDING_SIGNATURE:
            totals.pending_signature += 1
        else:
            totals.pending += 1

    return DashboardRead(
        orders_by_day=[CountItem(label=d, count=by_day[d]) for d in sorted(by_day)],
        orders_by_client=_items(by_client, top),
        orders_by_technician=_items(by_technician, top),
        status_totals=totals,
        total_orders=len(orders),
        total_clients=await _count(db, select(func.count(Client.id)).where(Client.status == "active")),
        total_personnel=await _count(db, select(func.count(Person.id)).where(Person.status == "active")),
        active_projects=await _count(db, select(func.count(Project.id)).where(Project.status == PROJECT_ACTIVE)),
    )
