"""
Tests para el módulo de Salidas
"""

import pytest
from decimal import Decimal
from datetime import date
from pydantic import ValidationError

from app.modules.outflows.schemas import OutflowCreate
from app.modules.outflows.service import OutflowService


def outflow_payload(user_id, **overrides):
    data = {
        "amount": Decimal("150.00"),
        "concept": "Pago de luz",
        "payment_label": "Transferencia",
        "outflow_date": date(2025, 8, 4),
        "user_id": user_id,
    }
    data.update(overrides)
    return OutflowCreate(**data)


def test_amount_must_be_positive(user_id):
    with pytest.raises(ValidationError):
        outflow_payload(user_id, amount=Decimal("0"))


def test_blank_concept_is_rejected(user_id):
    with pytest.raises(ValidationError):
        outflow_payload(user_id, concept="   ")


def test_outflow_numbers_are_sequential(db_session, user_id):
    service = OutflowService(db_session)
    first = service.create_outflow(outflow_payload(user_id))
    second = service.create_outflow(outflow_payload(user_id))
    assert (first.outflow_number, second.outflow_number) == ("OUT001", "OUT002")

    service.delete_outflow(first.id)
    third = service.create_outflow(outflow_payload(user_id))
    assert third.outflow_number == "OUT003"


def test_list_by_range(db_session, user_id):
    service = OutflowService(db_session)
    service.create_outflow(outflow_payload(user_id, outflow_date=date(2025, 8, 1)))
    service.create_outflow(outflow_payload(user_id, outflow_date=date(2025, 9, 1)))

    result = service.get_outflows(date(2025, 8, 1), date(2025, 8, 31))
    assert result["total"] == 1


def test_create_endpoint(client, user_id):
    response = client.post("/outflows/", json={
        "amount": "99.90",
        "concept": "Bolsas",
        "payment_label": "Efectivo de caja",
        "outflow_date": "2025-08-10",
        "user_id": str(user_id)
    })
    assert response.status_code == 201
    assert response.json()["outflow_number"] == "OUT001"
    assert client.get("/outflows/").json()["total"] == 1


def test_amount_is_limited_to_cents(user_id):
    with pytest.raises(ValidationError):
        outflow_payload(user_id, amount=Decimal("12.345"))
