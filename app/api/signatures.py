"""Public signing endpoints. Access is granted by the order's one-time token."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.engine import get_db
from app.schemas import SignatureSubmission
from app.services import signatures
from app.services.flows import flow_response, run_flow
from app.services.work_orders import notify_completion

router = APIRouter(prefix="/api/firmar", tags=["signatures"])


@router.get("/{order_id}")
async def get_order_for_signing(
    order_id: str,
    token: str = "",
    db: AsyncSession = Depends(get_db),
):
    result = await run_flow("get_order_for_signing", signatures.get_order_for_signing(db, order_id, token))
    return flow_response(result)


@router.post("/{order_id}")
async def submit_signature(
    order_id: str,
    body: SignatureSubmission,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    result = await run_flow(
        "submit_remote_signature",
        signatures.submit_remote_signature(
            db, order_id, body.token,
            receiver_name=body.receiver_name,
            receiver_national_id=body.receiver_national_id,
            signature_image=body.signature_image,
        ),
    )
    if result.success:
        background.add_task(notify_completion, **result.data)
        result.data = {"order_id": result.data["order_id"], "folio": result.data["folio"]}
    return flow_response(result)
