from fastapi import APIRouter, Depends

from dependencies.auth import get_current_user
from dependencies.services import get_payment_service
from models.payment import (
    CreatePaymentIntentBody,
    CreatePaymentIntentResponse,
    VerifyPaymentBody,
    VerifyPaymentResponse,
)
from models.session import CurrentUser
from services.payments import PaymentService


router = APIRouter(
    prefix="/functions/v1",
    tags=["Payments"],
)


# -----------------------------------------------------
# POST /functions/v1/create-payment-intent
# -----------------------------------------------------
@router.post(
    "/create-payment-intent",
    response_model=CreatePaymentIntentResponse,
    summary="Create a pending payment for a request",
)
def create_payment_intent(
    payload: CreatePaymentIntentBody,
    current_user: CurrentUser = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    result = payments.create_intent(
        payload.request_id,
        payload.amount,
        payload.document_name,
        payload.metadata,
        current_user,
    )
    return CreatePaymentIntentResponse(**result)


# -----------------------------------------------------
# POST /functions/v1/verify-payment
# Marks the payment completed; the request's status is not changed
# -----------------------------------------------------
@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    summary="Confirm a payment",
)
def verify_payment(
    payload: VerifyPaymentBody,
    current_user: CurrentUser = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    result = payments.verify(payload.client_secret, payload.request_id, current_user)
    return VerifyPaymentResponse(**result)
