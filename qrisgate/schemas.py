"""Pydantic schemas for API contracts."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .models import PaymentStatus
from .settlement import SettlementStatus

# Leaves room for the unique fee well inside a 64-bit INTEGER column.
MAX_AMOUNT = 999_999_999_999


class CreatePaymentRequest(BaseModel):
    merchant_payload: str = Field(min_length=5, description="Static QRIS payload string")
    amount: int = Field(ge=1, le=MAX_AMOUNT)
    with_fee: bool | None = Field(default=None, description="Override the unique fee setting")


class PaymentResponse(BaseModel):
    transaction_id: str
    amount: int
    fee: int
    total_amount: int
    payload: str
    crc: str
    status: PaymentStatus
    qr_image_url: str | None = None
    created_at: datetime
    expires_at: datetime


class CreatePaymentResponse(PaymentResponse):
    qr_png_base64: str


class MerchantCredentials(BaseModel):
    merchant_id: str = Field(min_length=1, max_length=64)
    access_token: str = Field(min_length=1)


class SettlementCheckRequest(MerchantCredentials):
    amount: int | str


class SettlementCheckResponse(BaseModel):
    status: SettlementStatus


class VerifyRequest(BaseModel):
    payload: str = Field(min_length=1)


class TLVElement(BaseModel):
    tag: str
    length: int
    value: str


class VerifyResponse(BaseModel):
    crc_valid: bool
    amount: str | None
    elements: list[TLVElement]
