# services/payments.py

"""
Payment handshake.

``create_intent`` records a pending payment; ``verify`` marks it completed and
stamps the request's payment fields. Neither touches ``requests.status``:
payment state and fulfilment state are tracked independently.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from fastapi import HTTPException
from supabase import Client

from core.config import Settings
from core.errors import PaymentError, supabase_error
from core.logging_config import get_logger
from core.payment_providers import intent_id_from_client_secret
from core.utils import utcnow
from models.enums import PaymentStatus
from models.session import CurrentUser


logger = get_logger("payments")


def missing_fields_error(names) -> HTTPException:
    return HTTPException(400, f"Missing required fields: {', '.join(names)}")


class PaymentService:
    def __init__(self, client: Client, provider, settings: Settings, now: Callable[[], datetime] = utcnow):
        self.client = client
        self.provider = provider
        self.settings = settings
        self.now = now

    def _request_for(self, request_id: str, actor: CurrentUser) -> dict:
        try:
            res = (
                self.client.table("requests")
                .select("id, user_id, tracking_number")
                .eq("id", request_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load request")

        rows = res.data or []
        if not rows:
            raise HTTPException(404, "Request not found")
        if rows[0]["user_id"] != actor.id and not actor.is_staff:
            raise HTTPException(403, "You can only pay for your own requests")
        return rows[0]

    # -----------------------------------------------------
    # create-payment-intent
    # -----------------------------------------------------
    def create_intent(
        self,
        request_id: Optional[str],
        amount,
        document_name: Optional[str],
        metadata: Optional[dict],
        actor: CurrentUser,
    ) -> dict:
        if not request_id or not amount or not document_name:
            raise missing_fields_error(["requestId", "amount", "documentName"])

        try:
            amount = Decimal(str(amount)).quantize(Decimal("0.01"))
        except InvalidOperation:
            raise HTTPException(400, "amount must be a number")
        if amount <= 0:
            raise HTTPException(400, "amount must be greater than zero")

        request_row = self._request_for(request_id, actor)

        details = dict(metadata or {})
        details.setdefault("documentName", document_name)
        details.setdefault("trackingNumber", request_row.get("tracking_number"))

        try:
            intent = self.provider.create_intent(
                amount,
                self.settings.PAYMENT_CURRENCY,
                f"Payment for {document_name}",
                {"request_id": request_id, **details},
            )
        except PaymentError as e:
            raise HTTPException(e.status_code, e.message)

        row = {
            "request_id": request_id,
            "user_id": actor.id,
            "stripe_payment_intent_id": intent.payment_intent_id,
            "amount_php": str(amount),
            "currency": self.settings.PAYMENT_CURRENCY,
            "payment_method": "card",
            "payment_status": PaymentStatus.pending.value,
            "description": f"Payment for {document_name}",
            "metadata": details,
            "created_at": self.now().isoformat(),
        }

        try:
            self.client.table("payments").insert(row).execute()
        except Exception as e:
            supabase_error(e, "Failed to create payment record")

        logger.info(
            f"Payment intent {intent.payment_intent_id} created request={request_id} "
            f"amount={amount} provider={self.provider.name} by={actor.id}"
        )
        return {"client_secret": intent.client_secret, "payment_intent_id": intent.payment_intent_id}

    # -----------------------------------------------------
    # verify-payment
    # -----------------------------------------------------
    def verify(self, client_secret: Optional[str], request_id: Optional[str], actor: CurrentUser) -> dict:
        if not client_secret or not request_id:
            raise missing_fields_error(["clientSecret", "requestId"])

        self._request_for(request_id, actor)
        intent_id = intent_id_from_client_secret(client_secret)

        try:
            res = (
                self.client.table("payments")
                .select("*")
                .eq("stripe_payment_intent_id", intent_id)
                .eq("request_id", request_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load payment")

        payments = res.data or []
        if not payments:
            raise HTTPException(404, "Payment not found for this request")
        payment = payments[0]

        if payment.get("payment_status") != PaymentStatus.completed.value:
            try:
                self.provider.confirm(intent_id)
            except PaymentError as e:
                raise HTTPException(e.status_code, e.message)

        paid_at = self.now().isoformat()

        try:
            self.client.table("payments").update({
                "payment_status": PaymentStatus.completed.value,
                "payment_date": paid_at,
            }).eq("id", payment["id"]).execute()
        except Exception as e:
            supabase_error(e, "Failed to update payment")

        # Payment fields only; the fulfilment status is left alone
        try:
            self.client.table("requests").update({
                "payment_status": PaymentStatus.completed.value,
                "stripe_payment_intent_id": intent_id,
                "payment_date": paid_at,
            }).eq("id", request_id).execute()
        except Exception as e:
            supabase_error(e, "Failed to update request")

        logger.info(f"Payment {intent_id} verified request={request_id} by={actor.id}")
        return {"payment_status": PaymentStatus.completed.value, "payment_intent_id": intent_id}
