"""Work order API: create, edit, complete, delete, request a remote signature, PDF."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.engine import get_db
from app.dependencies import require_auth
from app.schemas import SignatureRequest, WorkOrderCreate, WorkOrderRead, WorkOrderUpdate
from app.services import signatures, work_orders
from app.services.auth import AuthContext
from app.services.flows import flow_response, run_flow
from app.services.pdf_generator import generate_work_order_pdf

router = APIRouter(prefix="/api/work-orders", tags=["work_orders"])


@router.get("", response_model=list[WorkOrderRead])
async def list_work_orders(
    search: str = "",
    history: bool = False,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    orders = await work_orders.list_visible_orders(db, auth, history=history, search=search)
    return [work_orders.to_read(o) for o in orders]


@router.post("", response_model=WorkOrderRead, status_code=201)
async def create_work_order(
    body: WorkOrderCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await work_orders.create_order(db, body, auth)
    return work_orders.to_read(order)


@router.get("/{order_id}", response_model=WorkOrderRead)
async def get_work_order(
    order_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await work_orders.get_visible_order(db, order_id, auth)
    return work_orders.to_read(order)


@router.patch("/{order_id}", response_model=WorkOrderRead)
async def update_work_order(
    order_id: str,
    body: WorkOrderUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await work_orders.update_order(db, order_id, body, auth)
    return work_orders.to_read(order)


@router.delete("/{order_id}", status_code=204)
async def delete_work_order(
    order_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await work_orders.delete_order(db, order_id, auth)
    return Response(status_code=204)


@router.post("/{order_id}/complete")
async def complete_work_order(
    order_id: str,
    background: BackgroundTasks,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    result = await run_flow("complete_work_order", work_orders.complete_order(db, order_id, auth))
    if result.success:
        background.add_task(work_orders.notify_completion, **result.data)
    return flow_response(result)


@router.post("/{order_id}/request-signature")
async def request_signature(
    order_id: str,
    body: SignatureRequest,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await work_orders.get_visible_order(db, order_id, auth)
    result = await run_flow(
        "request_signature",
        signatures.request_signature(
            db, order_id, body.recipient_email,
            base_url=request.headers.get("origin"),
            requested_by=auth.user_id,
        ),
    )
    return flow_response(result)


@router.post("/{order_id}/resend-signature")
async def resend_signature(
    order_id: str,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await work_orders.get_visible_order(db, order_id, auth)
    result = await run_flow(
        "resend_signature",
        signatures.resend_signature_email(db, order_id, base_url=request.headers.get("origin")),
    )
    return flow_response(result)


@router.get("/{order_id}/pdf")
async def work_order_pdf(
    order_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    order = await work_orders.get_visible_order(db, order_id, auth)
    pdf_bytes = generate_work_order_pdf(order)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="OT_{order.folio}.pdf"'},
    )
