from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.services.rut import validate_rut, format_rut


def _check_rut(v: str | None) -> str | None:
    if v is not None and not validate_rut(v):
        raise ValueError("RUT inválido")
    return format_rut(v) if v is not None else v


class ClientCreate(BaseModel):
    display_name: str
    legal_name: str = ""
    national_id: str
    address: str = ""
    phone: str = ""
    email: str = ""

    @field_validator("national_id")
    @classmethod
    def validate_national_id(cls, v: str) -> str:
        return _check_rut(v)


class ClientUpdate(BaseModel):
    display_name: str | None = None
    legal_name: str | None = None
    national_id: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    status: str | None = None

    @field_validator("national_id")
    @classmethod
    def validate_national_id(cls, v: str | None) -> str | None:
        return _check_rut(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in ("active", "inactive"):
            raise ValueError(f"Invalid status: {v}")
        return v


class ClientRead(BaseModel):
    id: str
    display_name: str
    legal_name: str
    national_id: str
    address: str
    phone: str
    email: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}
