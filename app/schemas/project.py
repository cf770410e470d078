from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from app.schemas.work_order import TeamMember, WorkOrderRead


class ProjectCreate(BaseModel):
    name: str
    client_id: str
    start_date: datetime | None = None
    team: list[TeamMember] = []


class ProjectRead(BaseModel):
    id: str
    name: str
    client_id: str
    client_name: str
    status: str
    start_date: datetime
    end_date: datetime | None
    summary: str
    team: list[TeamMember]
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectRead):
    orders: list[WorkOrderRead] = []
