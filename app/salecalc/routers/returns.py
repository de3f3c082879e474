from __future__ import annotations

from fastapi import APIRouter, Depends

from app.salecalc.core.deps import get_document_numbers
from app.salecalc.schemas.returns import (
    ReturnComputation,
    ReturnEligibility,
    ReturnEligibilityRequest,
    ReturnQuoteRequest,
    SaleReturnRecord,
    SaleReturnRequest,
)
from app.salecalc.services.numbering import DocumentNumbers
from app.salecalc.services.returns import build_sale_return, compute_return, return_eligibility

router = APIRouter()


@router.post("/salecalc/returns/quote", response_model=ReturnComputation)
def return_quote(payload: ReturnQuoteRequest):
    return compute_return(payload.sale_date, payload.items, payload.as_of)


@router.post("/salecalc/returns/eligibility", response_model=ReturnEligibility)
def return_check(payload: ReturnEligibilityRequest):
    return return_eligibility(payload.sale)


@router.post("/salecalc/returns", response_model=SaleReturnRecord, status_code=201)
def return_create(payload: SaleReturnRequest, numbers: DocumentNumbers = Depends(get_document_numbers)):
    return build_sale_return(
        payload.sale,
        payload.items,
        numbers,
        reason=payload.reason,
        refund_method=payload.refund_method,
        now=payload.as_of,
    )
