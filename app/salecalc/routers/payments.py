from __future__ import annotations

from fastapi import APIRouter

from app.salecalc.schemas.payments import (
    PaymentReconcileRequest,
    PaymentReconciliation,
    PaymentSplit,
    PayRemainderRequest,
)
from app.salecalc.services.payments import pay_remainder, reconcile_payment

router = APIRouter()


@router.post("/salecalc/payments/reconcile", response_model=PaymentReconciliation)
def payment_reconcile(payload: PaymentReconcileRequest):
    return reconcile_payment(
        payload.total_amount,
        payload.payment_type,
        payload.payment_split,
        payload.method,
    )


@router.post("/salecalc/payments/remainder", response_model=PaymentSplit)
def payment_remainder(payload: PayRemainderRequest):
    return pay_remainder(payload.total_amount, payload.payment_split, payload.channel)
