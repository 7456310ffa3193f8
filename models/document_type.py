# models/document_type.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
from pydantic import BaseModel, Field, field_validator


TWO_PLACES = Decimal("0.01")


def quantize_price(value):
    if value is None:
        return value
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError("price must be a number")
    if not price.is_finite():
        raise ValueError("price must be a finite number")
    return price.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class DocumentTypeBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(Decimal("0.00"), ge=0)
    requirements: Optional[str] = None
    processing_days: int = Field(1, gt=0)
    is_active: bool = True

    @field_validator("price", mode="before")
    @classmethod
    def _two_decimals(cls, v):
        return quantize_price(v)


class DocumentTypeCreate(DocumentTypeBase):
    pass


class DocumentTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    requirements: Optional[str] = None
    processing_days: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None

    @field_validator("price", mode="before")
    @classmethod
    def _two_decimals(cls, v):
        return quantize_price(v)


class DocumentTypeActive(BaseModel):
    is_active: bool


class DocumentTypeRead(DocumentTypeBase):
    id: str

    model_config = {"from_attributes": True}
