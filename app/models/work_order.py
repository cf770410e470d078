"""Work order models: one table per partition.

An order lives in exactly one partition at a time: ``ordenes`` while it is
open, ``historial`` once it is completed. Both tables share every column so a
record can be moved by copying its field dict.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Integer, Boolean, Text, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ULIDMixin, AuditMixin

STATUS_PENDING = "Pending"
STATUS_PENDING_SIGNATURE = "Pending Signature"
STATUS_COMPLETED = "Completed"

# Legacy Spanish values still present in older rows.
_STATUS_SYNONYMS = {
    "pendiente": STATUS_PENDING,
    "pending": STATUS_PENDING,
    "pending signature": STATUS_PENDING_SIGNATURE,
    "pendiente firma": STATUS_PENDING_SIGNATURE,
    "completado": STATUS_COMPLETED,
    "completed": STATUS_COMPLETED,
}


def normalize_status(value: str | None) -> str:
    """Map a stored status (including legacy Spanish variants) to its canonical value."""
    if not value:
        return STATUS_PENDING
    return _STATUS_SYNONYMS.get(value.strip().lower(), value)


def is_completed(value: str | None) -> bool:
    return normalize_status(value) == STATUS_COMPLETED


class WorkOrderColumns(ULIDMixin, AuditMixin):
    folio: Mapped[int] = mapped_column(Integer, unique=True, index=True)

    client_id: Mapped[str] = mapped_column(String(64), default="", index=True)
    client_name: Mapped[str] = mapped_column(String(255), default="")  # cached projection of Client.display_name
    client_phone: Mapped[str] = mapped_column(String(50), default="")
    client_email: Mapped[str] = mapped_column(String(255), default="")
    project_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None, index=True)

    address: Mapped[str] = mapped_column(String(500), default="")
    building: Mapped[str] = mapped_column(String(100), default="")
    floor: Mapped[str] = mapped_column(String(50), default="")
    signal_type: Mapped[str] = mapped_column(String(50), default="Simple")
    signal_count: Mapped[int] = mapped_column(Integer, default=1)
    is_cert: Mapped[bool] = mapped_column(Boolean, default=False)
    is_labeled: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[str] = mapped_column(Text, default="")

    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None, index=True)
    technician_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    tech_name: Mapped[str] = mapped_column(String(200), default="")
    tech_national_id: Mapped[str] = mapped_column(String(20), default="")
    technician_signature: Mapped[str] = mapped_column(Text, default="")  # data URL

    client_receiver_name: Mapped[str] = mapped_column(String(200), default="")
    client_receiver_national_id: Mapped[str] = mapped_column(String(20), default="")
    client_receiver_email: Mapped[str] = mapped_column(String(255), default="")
    client_signature: Mapped[str] = mapped_column(Text, default="")  # data URL
    sketch_image: Mapped[str] = mapped_column(Text, default="")

    status: Mapped[str] = mapped_column(String(30), default=STATUS_PENDING)
    team: Mapped[list] = mapped_column(JSON, default=list)  # [{"id": ..., "name": ...}, ...]

    signature_token: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    token_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    signature_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    is_project_summary: Mapped[bool] = mapped_column(Boolean, default=False)
    # Deprecated: removed by the reconciliation pass, never written elsewhere.
    supervisor_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    migrated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)


class ActiveWorkOrder(Base, WorkOrderColumns):
    __tablename__ = "ordenes"


class HistoricalWorkOrder(Base, WorkOrderColumns):
    __tablename__ = "historial"


def order_fields(order: ActiveWorkOrder | HistoricalWorkOrder) -> dict:
    """Column values of an order, keyed by column name."""
    return {col.key: getattr(order, col.key) for col in order.__table__.columns}
