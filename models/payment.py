# models/payment.py

from typing import Any, Dict, Optional
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field


# Function bodies keep their camelCase wire names.
class CreatePaymentIntentBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: Optional[str] = Field(None, alias="requestId")
    amount: Optional[Decimal] = None
    document_name: Optional[str] = Field(None, alias="documentName")
    metadata: Dict[str, Any] = {}


class CreatePaymentIntentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(..., alias="clientSecret")
    payment_intent_id: str = Field(..., alias="paymentIntentId")


class VerifyPaymentBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: Optional[str] = Field(None, alias="clientSecret")
    request_id: Optional[str] = Field(None, alias="requestId")


class VerifyPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_status: str = Field(..., alias="paymentStatus")
    payment_intent_id: str = Field(..., alias="paymentIntentId")
