from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.salecalc.schemas.common import MoneyInput, MoneyValue


PaymentType = Literal["single", "hybrid"]
PaymentChannel = Literal["cash", "card", "bank_transfer"]
PAYMENT_CHANNELS: tuple[PaymentChannel, ...] = ("cash", "card", "bank_transfer")


class PaymentSplit(BaseModel):
    cash: MoneyInput = Decimal("0.00")
    card: MoneyInput = Decimal("0.00")
    bank_transfer: MoneyInput = Decimal("0.00")

    def amount_for(self, channel: PaymentChannel) -> Decimal:
        return getattr(self, channel)


class PaymentReconcileRequest(BaseModel):
    total_amount: MoneyInput
    payment_type: PaymentType
    method: PaymentChannel | None = None
    payment_split: PaymentSplit = Field(default_factory=PaymentSplit)


class PaymentReconciliation(BaseModel):
    valid: bool
    error: Literal["PaymentMismatch"] | None = None
    payment_type: PaymentType
    method: PaymentChannel | None = None
    total_amount: MoneyValue
    paid_total: MoneyValue
    difference: MoneyValue
    payment_split: PaymentSplit


class PayRemainderRequest(BaseModel):
    total_amount: MoneyInput
    channel: PaymentChannel
    payment_split: PaymentSplit = Field(default_factory=PaymentSplit)
