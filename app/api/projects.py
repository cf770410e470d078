"""Projects API: create, list, detail with orders, close."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.db.engine import get_db
from app.dependencies import require_auth, require_role
from app.schemas import ProjectCreate, ProjectDetail, ProjectRead
from app.services import projects
from app.services.auth import AuthContext
from app.services.flows import flow_response, run_flow
from app.services.work_orders import can_view, to_read

router = APIRouter(prefix="/api/projects", tags=["projects"])

_staff_dep = require_role("admin", "supervisor")


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    status: str | None = None,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_projects(db, status=status)


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    auth: AuthContext = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    return await projects.create_project(db, body, auth)


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    project = await crud.get_project(db, project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    orders = await projects.project_orders(db, project_id)
    acta = await crud.get_historical_order(db, projects.summary_order_id(project_id))
    if acta is not None:
        orders.append(acta)
    detail = ProjectDetail.model_validate(project)
    detail.orders = [to_read(o) for o in orders if can_view(auth, o)]
    return detail


@router.post("/{project_id}/close")
async def close_project(
    project_id: str,
    auth: AuthContext = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await run_flow("close_project", projects.close_project(db, project_id, auth.user_id))
    return flow_response(result)
