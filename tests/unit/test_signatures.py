import re
from datetime import timedelta

import pytest

from app.db import crud
from app.errors import (
    InvalidTokenError, NotFoundError, TokenExpiredError, TransportError, ValidationError,
)
from app.models import HistoricalWorkOrder
from app.models.base import as_utc, utcnow
from app.models.work_order import STATUS_COMPLETED, STATUS_PENDING_SIGNATURE
from app.services import signatures
from app.services.email import EmailResult
from app.services.flows import run_flow

from factories import add_order

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def sent(monkeypatch):
    calls = []

    def fake_send(to, client_name, folio, link, ttl_days):
        calls.append({"to": to, "link": link, "ttl_days": ttl_days})
        return EmailResult(success=True, message_id="<m1@icsa.cl>")

    monkeypatch.setattr(signatures, "send_signature_request_email", fake_send)
    return calls


def test_generate_token_is_two_base36_segments():
    token = signatures.generate_token(13)
    assert re.fullmatch(r"[0-9a-z]{26}", token)
    assert signatures.generate_token(13) != token


async def test_request_signature_issues_token(db, sent):
    order = await add_order(db, 100001, client_name="Edificio Sol")
    before = utcnow()

    data = await signatures.request_signature(db, order.id, "maria@sol.cl", base_url="https://ot.icsa.cl/")

    refreshed = await crud.get_active_order(db, order.id)
    assert refreshed.status == STATUS_PENDING_SIGNATURE
    assert refreshed.client_receiver_email == "maria@sol.cl"
    expiry = as_utc(refreshed.token_expiry)
    assert timedelta(days=7) - timedelta(minutes=1) < expiry - before <= timedelta(days=7, minutes=1)
    assert data["link"] == f"https://ot.icsa.cl/firmar/{order.id}?token={refreshed.signature_token}"
    assert data["email_sent"] is True
    assert sent[0]["to"] == "maria@sol.cl"
    assert sent[0]["ttl_days"] == 7


async def test_request_signature_rejects_missing_and_completed(db, sent):
    with pytest.raises(NotFoundError):
        await signatures.request_signature(db, "missing", "maria@sol.cl")
    legacy = await add_order(db, 100001, status="Completado")
    with pytest.raises(ValidationError):
        await signatures.request_signature(db, legacy.id, "maria@sol.cl")
    assert sent == []


async def test_transport_failure_keeps_token(db, monkeypatch):
    def fail(*args, **kwargs):
        raise TransportError("No se pudo enviar el correo")

    monkeypatch.setattr(signatures, "send_signature_request_email", fail)
    order = await add_order(db, 100001)

    result = await run_flow("request_signature", signatures.request_signature(db, order.id, "maria@sol.cl"))

    assert result.success is False
    assert result.status_code == 502
    refreshed = await crud.get_active_order(db, order.id)
    assert refreshed.signature_token
    assert refreshed.status == STATUS_PENDING_SIGNATURE


async def _awaiting(db, token="tok123", expires_in=timedelta(days=7)):
    return await add_order(
        db, 100001,
        client_name="Edificio Sol",
        description="Instalación",
        signature_token=token,
        token_expiry=utcnow() + expires_in,
        status=STATUS_PENDING_SIGNATURE,
    )


async def test_check_order_is_fail_fast(db):
    with pytest.raises(NotFoundError):
        await signatures.get_order_for_signing(db, "missing", "whatever")

    order = await _awaiting(db, expires_in=timedelta(days=-1))
    # wrong token wins over expiry
    with pytest.raises(InvalidTokenError):
        await signatures.get_order_for_signing(db, order.id, "wrong")
    with pytest.raises(TokenExpiredError):
        await signatures.get_order_for_signing(db, order.id, "tok123")


async def test_get_order_for_signing_hides_token(db):
    order = await _awaiting(db)
    data = await signatures.get_order_for_signing(db, order.id, "tok123")
    assert data["folio"] == 100001
    assert "signature_token" not in data


async def test_submit_remote_signature_completes_order(db):
    order = await _awaiting(db)
    order_id = order.id

    notice = await signatures.submit_remote_signature(
        db, order_id, "tok123",
        receiver_name="María Soto",
        receiver_national_id="11.111.111-1",
        signature_image=SIGNATURE,
    )

    assert await crud.get_active_order(db, order_id) is None
    record = await crud.get_historical_order(db, order_id)
    assert isinstance(record, HistoricalWorkOrder)
    assert record.status == STATUS_COMPLETED
    assert record.client_receiver_name == "María Soto"
    assert record.client_signature == SIGNATURE
    assert record.signature_date is not None
    assert record.signature_token is None
    assert record.token_expiry is None
    assert record.description == "Instalación"
    assert notice["order_id"] == order_id


async def test_second_submission_finds_nothing(db):
    order = await _awaiting(db)
    args = dict(receiver_name="María Soto", receiver_national_id="11.111.111-1", signature_image=SIGNATURE)
    await signatures.submit_remote_signature(db, order.id, "tok123", **args)

    result = await run_flow(
        "submit_remote_signature",
        signatures.submit_remote_signature(db, order.id, "tok123", **args),
    )
    assert result.success is False
    assert result.status_code == 404


async def test_expired_token_leaves_state_untouched(db):
    order = await _awaiting(db, expires_in=timedelta(seconds=-1))
    with pytest.raises(TokenExpiredError):
        await signatures.submit_remote_signature(
            db, order.id, "tok123",
            receiver_name="María Soto", receiver_national_id="11.111.111-1", signature_image=SIGNATURE,
        )
    refreshed = await crud.get_active_order(db, order.id)
    assert refreshed.status == STATUS_PENDING_SIGNATURE
    assert await crud.get_historical_order(db, order.id) is None


@pytest.mark.parametrize("name, rut, image", [
    ("", "11.111.111-1", SIGNATURE),
    ("María Soto", "11.111.111-2", SIGNATURE),
    ("María Soto", "11.111.111-1", ""),
])
async def test_submit_validates_receiver(db, name, rut, image):
    order = await _awaiting(db)
    with pytest.raises(ValidationError):
        await signatures.submit_remote_signature(
            db, order.id, "tok123", receiver_name=name, receiver_national_id=rut, signature_image=image,
        )
    assert await crud.get_active_order(db, order.id) is not None


async def test_resend_signature_email_reuses_token(db, sent):
    order = await _awaiting(db)
    order.client_receiver_email = "maria@sol.cl"
    await db.commit()

    data = await signatures.resend_signature_email(db, order.id, base_url="https://ot.icsa.cl")

    assert data["link"] == f"https://ot.icsa.cl/firmar/{order.id}?token=tok123"
    assert data["email_sent"] is True
    assert sent[0]["to"] == "maria@sol.cl"


async def test_resend_signature_email_needs_live_token(db, sent):
    plain = await add_order(db, 100002)
    with pytest.raises(NotFoundError):
        await signatures.resend_signature_email(db, plain.id)

    expired = await _awaiting(db, expires_in=timedelta(days=-1))
    with pytest.raises(TokenExpiredError):
        await signatures.resend_signature_email(db, expired.id)
    assert sent == []


async def test_non_ascii_token_is_rejected_as_invalid(db):
    order = await _awaiting(db)
    order_id = order.id

    result = await run_flow("get_order_for_signing", signatures.get_order_for_signing(db, order_id, "tokñ23"))
    assert result.success is False
    assert result.status_code == 403

    with pytest.raises(InvalidTokenError):
        await signatures.submit_remote_signature(
            db, order_id, "tokñ23",
            receiver_name="María Soto", receiver_national_id="11.111.111-1", signature_image=SIGNATURE,
        )
    assert await crud.get_active_order(db, order_id) is not None
