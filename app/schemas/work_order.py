from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.models.work_order import normalize_status
from app.services.rut import validate_rut


class TeamMember(BaseModel):
    id: str
    name: str = ""


class WorkOrderCreate(BaseModel):
    client_id: str = ""
    client_name: str = ""
    client_phone: str = ""
    client_email: str = ""
    project_id: str | None = None
    address: str = ""
    building: str = ""
    floor: str = ""
    signal_type: str = "Simple"
    signal_count: int = 1
    is_cert: bool = False
    is_labeled: bool = False
    description: str = ""
    technician_id: str | None = None
    tech_name: str = ""
    tech_national_id: str = ""
    team: list[TeamMember] = []
    sketch_image: str = ""

    @field_validator("signal_count")
    @classmethod
    def validate_signal_count(cls, v: int) -> int:
        if v < 0:
            raise ValueError("signal_count must be >= 0")
        return v

    @field_validator("tech_national_id")
    @classmethod
    def validate_tech_rut(cls, v: str) -> str:
        if v and not validate_rut(v):
            raise ValueError("RUT inválido")
        return v


class WorkOrderUpdate(BaseModel):
    client_id: str | None = None
    client_name: str | None = None
    client_phone: str | None = None
    client_email: str | None = None
    project_id: str | None = None
    address: str | None = None
    building: str | None = None
    floor: str | None = None
    signal_type: str | None = None
    signal_count: int | None = None
    is_cert: bool | None = None
    is_labeled: bool | None = None
    description: str | None = None
    technician_id: str | None = None
    tech_name: str | None = None
    tech_national_id: str | None = None
    technician_signature: str | None = None
    client_receiver_name: str | None = None
    client_receiver_national_id: str | None = None
    client_receiver_email: str | None = None
    client_signature: str | None = None
    sketch_image: str | None = None
    team: list[TeamMember] | None = None


class WorkOrderRead(BaseModel):
    """Order as returned to clients. The signature token is never exposed."""

    id: str
    folio: int
    client_id: str
    client_name: str
    client_phone: str
    client_email: str
    project_id: str | None
    address: str
    building: str
    floor: str
    signal_type: str
    signal_count: int
    is_cert: bool
    is_labeled: bool
    description: str
    owner_id: str | None
    technician_id: str | None
    tech_name: str
    tech_national_id: str
    technician_signature: str
    client_receiver_name: str
    client_receiver_national_id: str
    client_receiver_email: str
    client_signature: str
    sketch_image: str
    status: str
    team: list[TeamMember]
    token_expiry: datetime | None
    signature_date: datetime | None
    is_project_summary: bool
    created_at: datetime
    updated_at: datetime | None
    updated_by: str
    partition: str = "active"

    model_config = {"from_attributes": True}

    @field_validator("team", mode="before")
    @classmethod
    def team_or_empty(cls, v):
        return v or []

    @field_validator("status", mode="before")
    @classmethod
    def canonical_status(cls, v):
        return normalize_status(v)
