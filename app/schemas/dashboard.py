from __future__ import annotations
from pydantic import BaseModel


class CountItem(BaseModel):
    label: str
    count: int


class StatusTotals(BaseModel):
    pending: int = 0
    pending_signature: int = 0
    completed: int = 0


class DashboardRead(BaseModel):
    orders_by_day: list[CountItem]
    orders_by_client: list[CountItem]
    orders_by_technician: list[CountItem]
    status_totals: StatusTotals
    total_orders: int
    total_clients: int
    total_personnel: int
    active_projects: int
