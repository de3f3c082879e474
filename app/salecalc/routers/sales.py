from __future__ import annotations

from fastapi import APIRouter, Depends

from app.salecalc.core.deps import get_document_numbers
from app.salecalc.schemas.sales import PersistedSale, SaleDraft, SaleTotals, SaleTotalsRequest
from app.salecalc.services.numbering import DocumentNumbers
from app.salecalc.services.pricing import compute_sale_totals
from app.salecalc.services.sales import submit_sale

router = APIRouter()


@router.post("/salecalc/sales/totals", response_model=SaleTotals)
def sale_totals(payload: SaleTotalsRequest):
    return compute_sale_totals(payload.line_items, payload.discount, payload.vat_included)


@router.post("/salecalc/sales/submit", response_model=PersistedSale, status_code=201)
def sale_submit(payload: SaleDraft, numbers: DocumentNumbers = Depends(get_document_numbers)):
    return submit_sale(payload, numbers)
