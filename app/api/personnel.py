"""Personnel API. Every person gets a login user that shares their id."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.db.engine import get_db
from app.dependencies import require_auth, require_role
from app.models import Person, User
from app.schemas import PersonCreate, PersonRead, PersonUpdate
from app.services.auth import AuthContext, hash_password, remove_all_user_sessions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/personnel", tags=["personnel"])

_admin_dep = require_role("admin")


@router.get("", response_model=list[PersonRead])
async def list_personnel(
    search: str = "",
    include_inactive: bool = False,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_personnel(db, search=search, active_only=not include_inactive)


@router.post("", response_model=PersonRead, status_code=201)
async def create_person(
    body: PersonCreate,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    email = body.email.strip().lower()
    if await crud.get_user_by_email(db, email):
        return JSONResponse(status_code=409, content={"detail": "User with this email already exists"})

    person = Person(
        full_name=body.full_name,
        national_id=body.national_id,
        email=email,
        phone=body.phone,
        role=body.role,
        updated_by=auth.user_id,
    )
    db.add(person)
    await db.flush()
    db.add(User(
        id=person.id,
        email=email,
        display_name=body.full_name,
        password_hash=hash_password(body.password),
        role=body.role,
    ))
    await db.commit()
    await db.refresh(person)
    logger.info("Person %s created by %s", person.id, auth.user_id)
    return person


@router.get("/{person_id}", response_model=PersonRead)
async def get_person(
    person_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    person = await crud.get_person(db, person_id)
    if not person:
        raise HTTPException(404, "Person not found")
    return person


@router.patch("/{person_id}", response_model=PersonRead)
async def update_person(
    person_id: str,
    body: PersonUpdate,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    person = await crud.get_person(db, person_id)
    if not person:
        raise HTTPException(404, "Person not found")

    changes = body.model_dump(exclude_unset=True)
    if changes.get("email"):
        changes["email"] = changes["email"].strip().lower()
        other = await crud.get_user_by_email(db, changes["email"])
        if other and other.id != person_id:
            return JSONResponse(status_code=409, content={"detail": "User with this email already exists"})

    user = await crud.get_user(db, person_id)
    if user:
        if changes.get("email"):
            user.email = changes["email"]
        if changes.get("full_name"):
            user.display_name = changes["full_name"]
        if changes.get("role"):
            user.role = changes["role"]
        if changes.get("status"):
            user.is_active = changes["status"] == "active"
    return await crud.update_person(db, person, updated_by=auth.user_id, **changes)


@router.delete("/{person_id}", response_model=PersonRead)
async def deactivate_person(
    person_id: str,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    """Personnel is never hard-deleted: the person is marked inactive and logged out."""
    if person_id == auth.user_id:
        raise HTTPException(400, "Cannot deactivate yourself")
    person = await crud.get_person(db, person_id)
    if not person:
        raise HTTPException(404, "Person not found")
    user = await crud.get_user(db, person_id)
    if user:
        user.is_active = False
    person = await crud.update_person(db, person, updated_by=auth.user_id, status="inactive")
    await remove_all_user_sessions(person_id, db)
    return person
