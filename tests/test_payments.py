# tests/test_payments.py

"""
Tests for the payment functions and the payment providers.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
import stripe
from fastapi import HTTPException
from fastapi.testclient import TestClient

from core.config import settings
from core.errors import PaymentError
from core.payment_providers import (
    PlaceholderProvider,
    StripeProvider,
    build_payment_provider,
    intent_id_from_client_secret,
    to_minor_units,
)
from services.payments import PaymentService
from tests.conftest import ENCODER_ID, OTHER_RESIDENT_ID, RESIDENT_ID, as_user, auth_headers


@pytest.fixture
def payments(fake_db) -> PaymentService:
    return PaymentService(fake_db, PlaceholderProvider(), settings)


def _create_body(request_id):
    return {"requestId": request_id, "amount": 50, "documentName": "Barangay Clearance"}


# ============================================================
# Functions over HTTP
# ============================================================
def test_payment_handshake_scenario(client: TestClient, fake_db, seed_request):
    """pending payment, then completed; the request's status is untouched."""
    request = seed_request(status="processing")

    created = client.post(
        "/functions/v1/create-payment-intent",
        json=_create_body(request["id"]),
        headers=auth_headers(RESIDENT_ID),
    )
    assert created.status_code == 200
    body = created.json()
    assert body["clientSecret"].startswith(body["paymentIntentId"] + "_secret_")

    payment = fake_db.rows("payments", request_id=request["id"])
    assert len(payment) == 1
    assert payment[0]["payment_status"] == "pending"
    assert payment[0]["amount_php"] == "50.00"
    assert payment[0]["payment_method"] == "card"
    assert payment[0]["user_id"] == RESIDENT_ID

    verified = client.post(
        "/functions/v1/verify-payment",
        json={"clientSecret": body["clientSecret"], "requestId": request["id"]},
        headers=auth_headers(RESIDENT_ID),
    )
    assert verified.status_code == 200
    assert verified.json()["paymentStatus"] == "completed"

    payment = fake_db.rows("payments", request_id=request["id"])[0]
    assert payment["payment_status"] == "completed"
    assert payment["payment_date"]

    stored = fake_db.rows("requests", id=request["id"])[0]
    assert stored["status"] == "processing"
    assert stored["payment_status"] == "completed"
    assert stored["stripe_payment_intent_id"] == body["paymentIntentId"]
    assert fake_db.rows("status_history") == []


def test_create_intent_missing_fields(client: TestClient, fake_db):
    response = client.post(
        "/functions/v1/create-payment-intent",
        json={"amount": 50},
        headers=auth_headers(RESIDENT_ID),
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields: requestId, amount, documentName"
    assert fake_db.rows("payments") == []


def test_verify_missing_fields(client: TestClient):
    response = client.post("/functions/v1/verify-payment", json={}, headers=auth_headers(RESIDENT_ID))
    assert response.status_code == 400
    assert "clientSecret" in response.json()["detail"]


def test_create_intent_requires_token(client: TestClient, seed_request, fake_db):
    request = seed_request()
    response = client.post("/functions/v1/create-payment-intent", json=_create_body(request["id"]))

    assert response.status_code == 401
    assert fake_db.rows("payments") == []


def test_create_intent_for_someone_elses_request(client: TestClient, seed_request, fake_db):
    request = seed_request(user_id=RESIDENT_ID)
    response = client.post(
        "/functions/v1/create-payment-intent",
        json=_create_body(request["id"]),
        headers=auth_headers(OTHER_RESIDENT_ID),
    )

    assert response.status_code == 403
    assert fake_db.rows("payments") == []


# ============================================================
# Service
# ============================================================
def test_unknown_request_is_404(payments):
    with pytest.raises(HTTPException) as exc:
        payments.create_intent("missing", 50, "Clearance", None, as_user(RESIDENT_ID, "resident"))
    assert exc.value.status_code == 404


@pytest.mark.parametrize("amount", [-5, "abc"])
def test_invalid_amount_rejected(payments, seed_request, amount):
    request = seed_request()
    with pytest.raises(HTTPException) as exc:
        payments.create_intent(request["id"], amount, "Clearance", None, as_user(RESIDENT_ID, "resident"))
    assert exc.value.status_code == 400


def test_verify_without_payment_row(payments, seed_request):
    request = seed_request()
    with pytest.raises(HTTPException) as exc:
        payments.verify("pi_123_secret_abc", request["id"], as_user(RESIDENT_ID, "resident"))
    assert exc.value.status_code == 404


def test_staff_may_create_intent_for_resident(payments, seed_request, fake_db):
    request = seed_request(user_id=RESIDENT_ID)
    result = payments.create_intent(request["id"], "75.5", "Clearance", {"counter": "1"}, as_user(ENCODER_ID, "encoder"))

    row = fake_db.rows("payments")[0]
    assert row["stripe_payment_intent_id"] == result["payment_intent_id"]
    assert row["amount_php"] == "75.50"
    assert row["metadata"]["counter"] == "1"
    assert row["metadata"]["trackingNumber"] == request["tracking_number"]


def test_provider_refusal_leaves_payment_pending(fake_db, seed_request):
    provider = PlaceholderProvider()
    service = PaymentService(fake_db, provider, settings)
    request = seed_request()
    resident = as_user(RESIDENT_ID, "resident")
    created = service.create_intent(request["id"], 50, "Clearance", None, resident)

    provider.confirm = Mock(side_effect=PaymentError("Payment not completed (status: requires_payment_method)", 402))
    with pytest.raises(HTTPException) as exc:
        service.verify(created["client_secret"], request["id"], resident)

    assert exc.value.status_code == 402
    assert fake_db.rows("payments")[0]["payment_status"] == "pending"
    assert fake_db.rows("requests", id=request["id"])[0].get("payment_status") is None


# ============================================================
# Providers
# ============================================================
def test_intent_id_from_client_secret():
    assert intent_id_from_client_secret("pi_3Nabc_secret_xyz") == "pi_3Nabc"
    assert intent_id_from_client_secret("pi_plain") == "pi_plain"


def test_minor_units():
    assert to_minor_units(Decimal("50.00")) == 5000
    assert to_minor_units(Decimal("0.10")) == 10


def test_build_payment_provider_defaults_to_placeholder():
    assert build_payment_provider(settings, "placeholder").name == "placeholder"


def test_stripe_provider_requires_key():
    with pytest.raises(PaymentError):
        StripeProvider("")


def test_stripe_create_intent():
    intent = SimpleNamespace(id="pi_live_1", client_secret="pi_live_1_secret_2")
    with patch.object(stripe.PaymentIntent, "create", return_value=intent) as create:
        result = StripeProvider("sk_test_x").create_intent(
            Decimal("50.00"), "PHP", "Payment for Barangay Clearance", {"request_id": "r1"}
        )

    assert result.payment_intent_id == "pi_live_1"
    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 5000
    assert kwargs["currency"] == "php"


def test_stripe_confirm_requires_succeeded():
    with patch.object(stripe.PaymentIntent, "retrieve", return_value=SimpleNamespace(status="processing")):
        with pytest.raises(PaymentError) as exc:
            StripeProvider("sk_test_x").confirm("pi_1")
    assert exc.value.status_code == 402

    with patch.object(stripe.PaymentIntent, "retrieve", return_value=SimpleNamespace(status="succeeded")):
        StripeProvider("sk_test_x").confirm("pi_1")

