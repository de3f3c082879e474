from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from app.salecalc.schemas.common import MoneyInput, MoneyValue
from app.salecalc.schemas.payments import PaymentChannel, PaymentSplit, PaymentType


SaleStatus = Literal["completed", "cancelled", "refunded"]
LineReturnStatus = Literal["not_returned", "partially_returned", "fully_returned"]


class LineItem(BaseModel):
    id: str | None = None
    product_id: str
    quantity: int
    unit_price: MoneyInput
    serial_number: str | None = None


class PercentageDiscount(BaseModel):
    kind: Literal["percentage"]
    value: Decimal


class AmountDiscount(BaseModel):
    kind: Literal["amount"]
    value: MoneyInput


DiscountSpec = Annotated[PercentageDiscount | AmountDiscount, Field(discriminator="kind")]


class SaleTotalsRequest(BaseModel):
    line_items: list[LineItem]
    discount: DiscountSpec | None = None
    vat_included: bool


class SaleTotals(BaseModel):
    items_total: MoneyValue
    subtotal: MoneyValue
    total_before_discount: MoneyValue
    discount_amount: MoneyValue
    final_subtotal: MoneyValue
    tax_amount: MoneyValue
    final_total: MoneyValue


class PersistedSaleLine(LineItem):
    id: str
    quantity_returned: int = 0
    return_status: LineReturnStatus = "not_returned"


class PersistedSale(BaseModel):
    id: str | None = None
    sale_number: str | None = None
    status: SaleStatus = "completed"
    sale_date: datetime
    line_items: list[PersistedSaleLine]
    discount: DiscountSpec | None = None
    vat_included: bool
    payment_type: PaymentType = "single"
    payment_method: PaymentChannel | None = None
    payment_split: PaymentSplit = Field(default_factory=PaymentSplit)
    subtotal: MoneyValue
    discount_amount: MoneyValue = Decimal("0.00")
    tax_amount: MoneyValue
    total_amount: MoneyValue


class SaleDraft(BaseModel):
    line_items: list[LineItem]
    discount: DiscountSpec | None = None
    vat_included: bool
    payment_type: PaymentType
    payment_method: PaymentChannel | None = None
    payment_split: PaymentSplit = Field(default_factory=PaymentSplit)
    sale_date: datetime | None = None
