import pytest
from pydantic import ValidationError

from app.schemas import (
    ClientCreate,
    ClientUpdate,
    FlowResult,
    PersonCreate,
    WorkOrderCreate,
    WorkOrderRead,
)
from app.models import HistoricalWorkOrder
from app.models.base import utcnow


def test_client_create_formats_rut():
    client = ClientCreate(display_name="Edificio Sol", national_id="123456785")
    assert client.national_id == "12.345.678-5"


def test_client_create_rejects_bad_rut():
    with pytest.raises(ValidationError):
        ClientCreate(display_name="Edificio Sol", national_id="12.345.678-9")


def test_client_update_rejects_unknown_status():
    with pytest.raises(ValidationError):
        ClientUpdate(status="archived")


def _person(**overrides):
    data = dict(
        full_name="Juan Pérez", national_id="12.345.678-5", email="jperez@icsa.cl",
        password="secreto", confirm_password="secreto",
    )
    data.update(overrides)
    return PersonCreate(**data)


def test_person_create_valid():
    person = _person()
    assert person.role == "technician"


def test_person_create_password_mismatch():
    with pytest.raises(ValidationError):
        _person(confirm_password="otra-cosa")


def test_person_create_short_password():
    with pytest.raises(ValidationError):
        _person(password="abc", confirm_password="abc")


def test_person_create_unknown_role():
    with pytest.raises(ValidationError):
        _person(role="owner")


def test_work_order_create_team_members():
    body = WorkOrderCreate(team=[{"id": "p1", "name": "Juan"}, {"id": "p2"}])
    assert [m.id for m in body.team] == ["p1", "p2"]
    assert body.team[1].name == ""


def _historical(**overrides):
    fields = dict(
        id="o1", folio=123456, client_id="", client_name="", client_phone="", client_email="",
        address="", building="", floor="", signal_type="Simple", signal_count=1,
        is_cert=False, is_labeled=False, description="", tech_name="", tech_national_id="",
        technician_signature="", client_receiver_name="", client_receiver_national_id="",
        client_receiver_email="", client_signature="", sketch_image="", status="Completed",
        team=None, is_project_summary=False, updated_by="", signature_token="secret",
    )
    fields.update(overrides)
    order = HistoricalWorkOrder(**fields)
    order.created_at = utcnow()
    return order


def test_work_order_read_hides_signature_token():
    data = WorkOrderRead.model_validate(_historical()).model_dump()
    assert "signature_token" not in data
    assert data["team"] == []


@pytest.mark.parametrize("stored, shown", [
    ("Completado", "Completed"),
    ("Pendiente", "Pending"),
    ("Pending Signature", "Pending Signature"),
])
def test_work_order_read_uses_canonical_status(stored, shown):
    assert WorkOrderRead.model_validate(_historical(status=stored)).status == shown


def test_flow_result_excludes_status_code():
    result = FlowResult(success=False, error="La orden no existe.", status_code=404)
    assert result.model_dump() == {"success": False, "error": "La orden no existe.", "data": {}}
    assert result.status_code == 404
