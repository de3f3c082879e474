from __future__ import annotations

from pydantic import BaseModel

from app.salecalc.schemas.sales import PersistedSale, SaleTotals


class ReceiptValidation(BaseModel):
    is_valid: bool
    errors: list[str]
    recomputed: SaleTotals | None = None


class SaleItemsValidation(BaseModel):
    is_valid: bool
    errors: list[str]


class ReceiptReport(BaseModel):
    sale_number: str | None
    calculations: ReceiptValidation
    items_validation: SaleItemsValidation
    overall_valid: bool
    summary: str


class ReceiptValidateRequest(BaseModel):
    sale: PersistedSale
