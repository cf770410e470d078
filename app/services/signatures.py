"""Remote signature: a one-time link lets the client sign an order from anywhere.

Unrequested -> AwaitingSignature (token issued, status "Pending Signature")
-> Completed (record moved to history, token discarded).
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db import crud
from app.errors import (
    InvalidTokenError, NotFoundError, TokenExpiredError, TransportError, ValidationError,
)
from app.models import ActiveWorkOrder
from app.models.base import as_utc, utcnow
from app.models.work_order import STATUS_COMPLETED, STATUS_PENDING_SIGNATURE, is_completed
from app.services.email import send_signature_request_email
from app.services.rut import validate_rut
from app.services.work_orders import completion_notice, move_to_history

logger = logging.getLogger(__name__)

_settings = get_settings()

_BASE36 = string.digits + string.ascii_lowercase
REMOTE_SIGNER = "firma-remota"


def generate_token(segment_length: int | None = None) -> str:
    """Two random base-36 segments, concatenated."""
    length = segment_length or _settings.signature.segment_length
    return "".join(
        "".join(secrets.choice(_BASE36) for _ in range(length)) for _ in range(2)
    )


def signing_link(base_url: str, order_id: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/firmar/{order_id}?token={token}"


async def request_signature(
    db: AsyncSession,
    order_id: str,
    recipient_email: str,
    base_url: str | None = None,
    requested_by: str = "",
) -> dict:
    """Issue a signing token for an open order and email the link.

    The token is committed before the email goes out, so a delivery failure
    leaves a valid link that can be re-sent.
    """
    order = await crud.get_active_order(db, order_id)
    if order is None:
        raise NotFoundError("Orden", order_id, "La orden no existe.")
    if is_completed(order.status):
        raise ValidationError("La orden ya está completada.")
    recipient_email = (recipient_email or "").strip()
    if "@" not in recipient_email:
        raise ValidationError("Correo del destinatario inválido.")

    ttl_days = _settings.signature.token_ttl_days
    token = generate_token()
    order = await crud.update_work_order(
        db, order,
        updated_by=requested_by,
        signature_token=token,
        token_expiry=utcnow() + timedelta(days=ttl_days),
        status=STATUS_PENDING_SIGNATURE,
        client_receiver_email=recipient_email,
    )
    link = signing_link(base_url or _settings.app_url, order.id, token)
    logger.info("Signature requested for order %s (folio %s) by %s", order.id, order.folio, requested_by)

    result = await asyncio.to_thread(
        send_signature_request_email, recipient_email, order.client_name, order.folio, link, ttl_days,
    )
    return {
        "order_id": order.id,
        "link": link,
        "token_expiry": as_utc(order.token_expiry).isoformat(),
        "email_sent": result.success,
    }


def check_token(order: ActiveWorkOrder | None, token: str) -> ActiveWorkOrder:
    """Fail fast: missing order, then wrong token, then expired token."""
    if order is None:
        raise NotFoundError("Orden", message="La orden no existe o ya fue procesada.")
    if not order.signature_token or not secrets.compare_digest(
        order.signature_token.encode(), (token or "").encode()
    ):
        raise InvalidTokenError("Enlace de firma inválido.")
    expiry = as_utc(order.token_expiry)
    if expiry is None or utcnow() >= expiry:
        raise TokenExpiredError("El enlace de firma ha expirado.")
    return order


async def get_order_for_signing(db: AsyncSession, order_id: str, token: str) -> dict:
    order = check_token(await crud.get_active_order(db, order_id), token)
    return {
        "id": order.id,
        "folio": order.folio,
        "client_name": order.client_name,
        "address": order.address,
        "building": order.building,
        "floor": order.floor,
        "description": order.description,
        "tech_name": order.tech_name,
        "signal_type": order.signal_type,
        "signal_count": order.signal_count,
        "created_at": order.created_at.isoformat(),
        "token_expiry": as_utc(order.token_expiry).isoformat(),
    }


async def submit_remote_signature(
    db: AsyncSession,
    order_id: str,
    token: str,
    receiver_name: str,
    receiver_national_id: str,
    signature_image: str,
) -> dict:
    order = check_token(await crud.get_active_order(db, order_id), token)

    receiver_name = (receiver_name or "").strip()
    if not receiver_name:
        raise ValidationError("El nombre de quien recibe es obligatorio.")
    if not validate_rut(receiver_national_id):
        raise ValidationError("RUT de quien recibe inválido.")
    if not signature_image:
        raise ValidationError("La firma es obligatoria.")

    now = utcnow()
    record = await move_to_history(
        db, order,
        client_receiver_name=receiver_name,
        client_receiver_national_id=receiver_national_id,
        client_signature=signature_image,
        signature_date=now,
        status=STATUS_COMPLETED,
        updated_at=now,
        updated_by=REMOTE_SIGNER,
    )
    logger.info("Order %s signed remotely by %s", record.id, receiver_name)
    return completion_notice(record)


async def resend_signature_email(db: AsyncSession, order_id: str, base_url: str | None = None) -> dict:
    """Re-send the link of a token that is still valid."""
    order = await crud.get_active_order(db, order_id)
    if order is None or not order.signature_token:
        raise NotFoundError("Orden", order_id, "La orden no tiene una firma pendiente.")
    check_token(order, order.signature_token)
    link = signing_link(base_url or _settings.app_url, order.id, order.signature_token)
    try:
        result = await asyncio.to_thread(
            send_signature_request_email, order.client_receiver_email, order.client_name,
            order.folio, link, _settings.signature.token_ttl_days,
        )
    except TransportError:
        logger.warning("Re-send of signature link for order %s failed", order.id)
        raise
    return {"order_id": order.id, "link": link, "email_sent": result.success}
