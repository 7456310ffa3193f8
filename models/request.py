# models/request.py

from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator

from core.statuses import normalize_status
from models.attachment import AttachmentRead


class StatusUpdate(BaseModel):
    """Staff status change. Legacy spellings are accepted and normalised."""
    status: str = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _canonical(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("status must not be blank")
        return normalize_status(v)


class RequestRead(BaseModel):
    id: str
    user_id: str
    document_type_id: str
    tracking_number: str
    status: str
    purpose: Optional[str] = None
    id_image_url: Optional[str] = None
    id_image_back_url: Optional[str] = None
    admin_notes: Optional[str] = None
    signed_document_url: Optional[str] = None
    processed_by: Optional[str] = None
    payment_status: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined for display
    document_type_name: Optional[str] = None
    document_price: Optional[Decimal] = None
    resident_name: Optional[str] = None
    resident_email: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _canonical(cls, v):
        return normalize_status(v)


class RequestCreated(BaseModel):
    request: RequestRead
    attachments: List[AttachmentRead] = []
    attachment_errors: List[str] = []


class ResidentSummary(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    ready_for_pickup: int = 0
    completed: int = 0
    rejected: int = 0
    cancelled: int = 0


class AdminDashboard(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    ready_for_pickup: int = 0
    completed: int = 0
    rejected: int = 0
    cancelled: int = 0
    today: int = 0
    recent: List[RequestRead] = []
