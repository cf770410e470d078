"""Client model: companies that order field work."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ULIDMixin, AuditMixin


class Client(Base, ULIDMixin, AuditMixin):
    __tablename__ = "clients"

    display_name: Mapped[str] = mapped_column(String(255), index=True)
    legal_name: Mapped[str] = mapped_column(String(255), default="")
    national_id: Mapped[str] = mapped_column(String(20))  # RUT
    address: Mapped[str] = mapped_column(String(500), default="")
    phone: Mapped[str] = mapped_column(String(50), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(20), default="active")  # active | inactive
