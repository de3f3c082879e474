from __future__ import annotations

from fastapi import APIRouter, Depends

from app.salecalc.core.deps import get_document_numbers
from app.salecalc.schemas.exchanges import (
    ExchangeRecord,
    ExchangeRequest,
    ExchangeSettlement,
    ExchangeSettlementRequest,
    TradeInValue,
    TradeInValueRequest,
)
from app.salecalc.services.exchanges import assess_trade_in_value, build_exchange, compute_exchange
from app.salecalc.services.numbering import DocumentNumbers

router = APIRouter()


@router.post("/salecalc/exchanges/settlement", response_model=ExchangeSettlement)
def exchange_settlement(payload: ExchangeSettlementRequest):
    return compute_exchange(payload.return_refund_amount, payload.new_items_total)


@router.post("/salecalc/exchanges/trade-in-value", response_model=TradeInValue)
def exchange_trade_in_value(payload: TradeInValueRequest):
    return assess_trade_in_value(payload.base_price, payload.condition)


@router.post("/salecalc/exchanges", response_model=ExchangeRecord, status_code=201)
def exchange_create(payload: ExchangeRequest, numbers: DocumentNumbers = Depends(get_document_numbers)):
    return build_exchange(
        payload.sale,
        payload.return_items,
        payload.new_items,
        numbers,
        reason=payload.reason,
        payment_type=payload.payment_type,
        payment_method=payload.payment_method,
        payment_split=payload.payment_split,
        now=payload.as_of,
    )
