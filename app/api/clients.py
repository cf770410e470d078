"""Clients API: list, create, read, update, deactivate."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.db.engine import get_db
from app.dependencies import require_auth, require_role
from app.schemas import ClientCreate, ClientRead, ClientUpdate
from app.services.auth import AuthContext

router = APIRouter(prefix="/api/clients", tags=["clients"])

_staff_dep = require_role("admin", "supervisor")


@router.get("", response_model=list[ClientRead])
async def list_clients(
    search: str = "",
    include_inactive: bool = False,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_clients(db, search=search, active_only=not include_inactive)


@router.post("", response_model=ClientRead, status_code=201)
async def create_client(
    body: ClientCreate,
    auth: AuthContext = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    return await crud.create_client(db, **body.model_dump(), updated_by=auth.user_id)


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    client = await crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")
    return client


@router.patch("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: str,
    body: ClientUpdate,
    auth: AuthContext = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    client = await crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")
    return await crud.update_client(db, client, updated_by=auth.user_id, **body.model_dump(exclude_unset=True))


@router.delete("/{client_id}", response_model=ClientRead)
async def deactivate_client(
    client_id: str,
    auth: AuthContext = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the client stays referenced by its orders."""
    client = await crud.get_client(db, client_id)
    if not client:
        raise HTTPException(404, "Client not found")
    return await crud.update_client(db, client, updated_by=auth.user_id, status="inactive")
