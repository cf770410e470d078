"""PDF generation service using xhtml2pdf."""

from __future__ import annotations

import io

from xhtml2pdf import pisa

from app.models import ActiveWorkOrder, HistoricalWorkOrder
from app.models.base import as_utc, utcnow
from app.models.work_order import normalize_status
from app.services.email import render_template

_STATUS_LABELS = {
    "Pending": "Pendiente",
    "Pending Signature": "Pendiente de firma",
    "Completed": "Completado",
}


def render_work_order_html(order: ActiveWorkOrder | HistoricalWorkOrder) -> str:
    signed = as_utc(order.signature_date)
    return render_template(
        "work_order.html.j2",
        order=order,
        status=_STATUS_LABELS.get(normalize_status(order.status), order.status),
        team_names=[m.get("name", "") for m in (order.team or [])],
        signature_date=signed.strftime("%d-%m-%Y %H:%M") if signed else "",
        report_date=utcnow().strftime("%d-%m-%Y"),
    )


def generate_work_order_pdf(order: ActiveWorkOrder | HistoricalWorkOrder) -> bytes:
    """Render a work order to PDF bytes."""
    pdf_buffer = io.BytesIO()
    pisa_status = pisa.CreatePDF(io.StringIO(render_work_order_html(order)), dest=pdf_buffer)
    if pisa_status.err:
        raise RuntimeError(f"Work order PDF generation failed with {pisa_status.err} errors")
    return pdf_buffer.getvalue()
