"""Project model: groups several work orders under one client engagement."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ULIDMixin, AuditMixin, utcnow

PROJECT_ACTIVE = "Active"
PROJECT_COMPLETED = "Completed"


class Project(Base, ULIDMixin, AuditMixin):
    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(255))
    client_id: Mapped[str] = mapped_column(String(64), default="")
    client_name: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(20), default=PROJECT_ACTIVE)  # Active | Completed
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    summary: Mapped[str] = mapped_column(Text, default="")
    team: Mapped[list] = mapped_column(JSON, default=list)  # [{"id": ..., "name": ...}, ...]
    created_by: Mapped[str] = mapped_column(String(64), default="")
