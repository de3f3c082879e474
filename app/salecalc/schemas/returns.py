from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from app.salecalc.schemas.common import MoneyInput, MoneyValue, RateValue
from app.salecalc.schemas.sales import LineReturnStatus, PersistedSale, SaleStatus


ReturnCondition = Literal["new", "good", "damaged", "defective"]
ReturnReason = Literal[
    "customer_request",
    "defective",
    "wrong_item",
    "damaged_on_arrival",
    "changed_mind",
    "warranty_claim",
    "other",
]
RefundMethod = Literal["cash", "card", "bank_transfer", "store_credit", "exchange"]


class ReturnQuoteItem(BaseModel):
    sale_line_id: str
    unit_price: MoneyInput
    quantity: int
    condition: ReturnCondition


class ReturnQuoteRequest(BaseModel):
    sale_date: datetime
    items: list[ReturnQuoteItem]
    as_of: datetime | None = None


class ReturnBreakdownLine(BaseModel):
    sale_line_id: str
    condition: ReturnCondition
    quantity: int
    unit_price: MoneyValue
    fee_rate: RateValue
    item_total: MoneyValue
    restocking_fee: MoneyValue
    refund_amount: MoneyValue


class ReturnComputation(BaseModel):
    days_since_purchase: int
    original_amount: MoneyValue
    restocking_fee: MoneyValue
    refund_amount: MoneyValue
    breakdown: list[ReturnBreakdownLine]


class ReturnRequestItem(BaseModel):
    sale_line_id: str
    quantity: int
    condition: ReturnCondition
    serial_number: str | None = None


class SaleReturnRequest(BaseModel):
    sale: PersistedSale
    items: list[ReturnRequestItem]
    reason: ReturnReason = "customer_request"
    refund_method: RefundMethod = "cash"
    as_of: datetime | None = None


class LineReturnState(BaseModel):
    sale_line_id: str
    quantity: int
    quantity_returned: int
    return_status: LineReturnStatus


class SaleReturnRecord(BaseModel):
    return_number: str
    sale_id: str | None
    sale_number: str | None
    reason: ReturnReason
    refund_method: RefundMethod
    returned_items: list[ReturnRequestItem]
    original_amount: MoneyValue
    restocking_fee: MoneyValue
    refund_amount: MoneyValue
    computation: ReturnComputation
    line_states: list[LineReturnState]
    sale_status: SaleStatus


class ReturnEligibilityRequest(BaseModel):
    sale: PersistedSale


class ReturnEligibility(BaseModel):
    eligible: bool
    reason: str | None = None
    returnable_lines: list[LineReturnState] = []
