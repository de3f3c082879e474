from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.salecalc.schemas.common import MoneyInput, MoneyValue
from app.salecalc.schemas.payments import PaymentChannel, PaymentReconciliation, PaymentSplit, PaymentType
from app.salecalc.schemas.returns import ReturnReason, ReturnRequestItem, SaleReturnRecord
from app.salecalc.schemas.sales import LineItem, PersistedSale, SaleTotals


TradeInCondition = Literal["excellent", "good", "fair", "poor"]


class ExchangeSettlementRequest(BaseModel):
    return_refund_amount: MoneyInput
    new_items_total: MoneyInput


class ExchangeSettlement(BaseModel):
    return_refund_amount: MoneyValue
    new_items_total: MoneyValue
    net_difference: MoneyValue
    additional_payment: MoneyValue
    refund_issued: MoneyValue
    credit_applied: MoneyValue
    customer_pays: bool
    customer_receives: bool
    even_exchange: bool


class ExchangeRequest(BaseModel):
    sale: PersistedSale
    return_items: list[ReturnRequestItem]
    new_items: list[LineItem]
    reason: ReturnReason = "customer_request"
    payment_type: PaymentType = "single"
    payment_method: PaymentChannel | None = None
    payment_split: PaymentSplit = Field(default_factory=PaymentSplit)
    as_of: datetime | None = None


class ExchangeRecord(BaseModel):
    exchange_number: str
    sale_return: SaleReturnRecord
    new_items: list[LineItem]
    new_items_totals: SaleTotals
    settlement: ExchangeSettlement
    payment: PaymentReconciliation | None = None


class TradeInValueRequest(BaseModel):
    base_price: MoneyInput
    condition: TradeInCondition


class TradeInValue(BaseModel):
    base_price: MoneyValue
    condition: TradeInCondition
    multiplier: Decimal
    suggested_value: MoneyValue
