"""Personnel directory: admins, supervisors and field technicians."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ULIDMixin, AuditMixin

PERSON_ROLES = ("admin", "supervisor", "technician")


class Person(Base, ULIDMixin, AuditMixin):
    __tablename__ = "personnel"

    full_name: Mapped[str] = mapped_column(String(200), index=True)
    national_id: Mapped[str] = mapped_column(String(20))  # RUT
    email: Mapped[str] = mapped_column(String(255), default="")
    phone: Mapped[str] = mapped_column(String(50), default="")
    role: Mapped[str] = mapped_column(String(20), default="technician")  # admin | supervisor | technician
    status: Mapped[str] = mapped_column(String(20), default="active")  # active | inactive
