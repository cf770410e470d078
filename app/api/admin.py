"""Admin API: identity reconciliation and password resets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.db.engine import get_db
from app.dependencies import require_auth
from app.schemas import PasswordUpdate
from app.services.auth import AuthContext, set_password
from app.services.flows import flow_response, run_flow
from app.services.reconciliation import reconcile_identities

router = APIRouter(prefix="/api/admin", tags=["admin"])


async def _reconcile(db: AsyncSession, auth: AuthContext, dry_run: bool) -> dict:
    report = await reconcile_identities(db, auth, dry_run=dry_run)
    return report.as_dict()


@router.post("/reconcile")
async def reconcile(
    dry_run: bool = False,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Backfill owner/technician ids. Non-admins get a 403 flow result."""
    result = await run_flow("reconcile_identities", _reconcile(db, auth, dry_run))
    return flow_response(result)


@router.put("/users/{user_id}/password")
async def update_user_password(
    user_id: str,
    body: PasswordUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    if not auth.is_admin:
        raise HTTPException(403, "Insufficient permissions")
    user = await crud.get_user(db, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    await set_password(user, body.new_password, db)
    return {"success": True}
