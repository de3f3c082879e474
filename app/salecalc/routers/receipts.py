from __future__ import annotations

from fastapi import APIRouter

from app.salecalc.schemas.receipts import ReceiptReport, ReceiptValidateRequest
from app.salecalc.services.receipts import generate_receipt_report

router = APIRouter()


@router.post("/salecalc/receipts/validate", response_model=ReceiptReport)
def receipt_validate(payload: ReceiptValidateRequest):
    return generate_receipt_report(payload.sale)
