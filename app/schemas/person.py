from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, field_validator, model_validator

from app.models.person import PERSON_ROLES
from app.schemas.client import _check_rut
from app.services.auth import MIN_PASSWORD_LENGTH


def _check_role(v: str | None) -> str | None:
    if v is not None and v not in PERSON_ROLES:
        raise ValueError(f"Invalid role: {v}")
    return v


class PersonCreate(BaseModel):
    full_name: str
    national_id: str
    email: str
    phone: str = ""
    role: str = "technician"
    password: str
    confirm_password: str

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("national_id")
    @classmethod
    def validate_national_id(cls, v: str) -> str:
        return _check_rut(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        return _check_role(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "PersonCreate":
        if self.password != self.confirm_password:
            raise ValueError("Las contraseñas no coinciden")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")
        return self


class PersonUpdate(BaseModel):
    full_name: str | None = None
    national_id: str | None = None
    email: str | None = None
    phone: str | None = None
    role: str | None = None
    status: str | None = None

    @field_validator("national_id")
    @classmethod
    def validate_national_id(cls, v: str | None) -> str | None:
        return _check_rut(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str | None) -> str | None:
        return _check_role(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in ("active", "inactive"):
            raise ValueError(f"Invalid status: {v}")
        return v


class PersonRead(BaseModel):
    id: str
    full_name: str
    national_id: str
    email: str
    phone: str
    role: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PasswordUpdate(BaseModel):
    new_password: str
