"""Refunds for returned sale lines.

Restocking fee rates by condition:

    defective               0%   (warranty, at any age)
    new, <= 14 days         0%
    new, > 14 days          5%
    good                   10%
    damaged                30%
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from app.salecalc.core.error_catalog import ErrorCatalog, fail
from app.salecalc.core.logging import log_json
from app.salecalc.schemas.returns import (
    LineReturnState,
    RefundMethod,
    ReturnBreakdownLine,
    ReturnComputation,
    ReturnEligibility,
    ReturnQuoteItem,
    ReturnReason,
    ReturnRequestItem,
    SaleReturnRecord,
)
from app.salecalc.schemas.sales import PersistedSale, PersistedSaleLine
from app.salecalc.services.money import ZERO, quantize_money, sum_money, to_decimal
from app.salecalc.services.numbering import DocumentNumbers

logger = logging.getLogger("salecalc.returns")

NEW_ITEM_GRACE_DAYS = 14
NEW_ITEM_LATE_RATE = Decimal("0.05")
RESTOCKING_FEE_RATES = {
    "defective": Decimal("0"),
    "good": Decimal("0.10"),
    "damaged": Decimal("0.30"),
}
BLOCKED_SALE_STATUSES = {"cancelled", "refunded"}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_since_purchase(sale_date: datetime, now: datetime) -> int:
    return (_as_utc(now) - _as_utc(sale_date)) // timedelta(days=1)


def restocking_fee_rate(condition: str, days: int) -> Decimal:
    if condition == "new":
        return Decimal("0") if days <= NEW_ITEM_GRACE_DAYS else NEW_ITEM_LATE_RATE
    try:
        return RESTOCKING_FEE_RATES[condition]
    except KeyError:
        raise fail(ErrorCatalog.VALIDATION_ERROR, f"unsupported return condition: {condition}") from None


def _quote_item_errors(items: Iterable[ReturnQuoteItem]) -> list[str]:
    errors = []
    for item in items:
        if item.quantity < 1:
            errors.append(f"Line {item.sale_line_id}: quantity must be at least 1")
        if to_decimal(item.unit_price) < 0:
            errors.append(f"Line {item.sale_line_id}: unit_price must be >= 0")
    return errors


def compute_return(
    sale_date: datetime,
    items: list[ReturnQuoteItem],
    now: datetime | None = None,
) -> ReturnComputation:
    # the clock is read once so every line sees the same age
    now = now or datetime.now(timezone.utc)
    errors = _quote_item_errors(items)
    if errors:
        raise fail(ErrorCatalog.VALIDATION_ERROR, *errors)

    days = days_since_purchase(sale_date, now)
    breakdown = []
    for item in items:
        rate = restocking_fee_rate(item.condition, days)
        item_total = quantize_money(to_decimal(item.unit_price) * item.quantity)
        fee = quantize_money(item_total * rate)
        breakdown.append(
            ReturnBreakdownLine(
                sale_line_id=item.sale_line_id,
                condition=item.condition,
                quantity=item.quantity,
                unit_price=quantize_money(item.unit_price),
                fee_rate=rate,
                item_total=item_total,
                restocking_fee=fee,
                refund_amount=quantize_money(item_total - fee),
            )
        )

    original_amount = sum_money(line.item_total for line in breakdown)
    restocking_fee = sum_money(line.restocking_fee for line in breakdown)
    return ReturnComputation(
        days_since_purchase=days,
        original_amount=original_amount,
        restocking_fee=restocking_fee,
        refund_amount=max(ZERO, quantize_money(original_amount - restocking_fee)),
        breakdown=breakdown,
    )


def _remaining_quantity(line: PersistedSaleLine) -> int:
    return max(0, line.quantity - line.quantity_returned)


def _blocked_reason(sale: PersistedSale) -> str | None:
    if sale.status in BLOCKED_SALE_STATUSES:
        return f"Sale is already {sale.status}"
    return None


def _requested_quantities(requests: Iterable[ReturnRequestItem]) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for request in requests:
        totals[request.sale_line_id] += request.quantity
    return dict(totals)


def check_return_eligibility(sale: PersistedSale, requests: list[ReturnRequestItem]) -> None:
    if not requests:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "items must not be empty")
    range_errors = [
        f"Line {request.sale_line_id}: quantity must be at least 1" for request in requests if request.quantity < 1
    ]
    if range_errors:
        raise fail(ErrorCatalog.VALIDATION_ERROR, *range_errors)

    messages: list[str] = []
    blocked = _blocked_reason(sale)
    if blocked:
        messages.append(blocked)

    lines = {line.id: line for line in sale.line_items}
    for line_id, requested in _requested_quantities(requests).items():
        line = lines.get(line_id)
        if line is None:
            messages.append(f"Sale line {line_id} not found in sale")
            continue
        remaining = _remaining_quantity(line)
        if line.return_status == "fully_returned" or remaining == 0:
            messages.append(f"Sale line {line_id} has already been fully returned")
        elif requested > remaining:
            messages.append(f"Cannot return {requested} units of line {line_id} - only {remaining} remaining")

    for request in requests:
        line = lines.get(request.sale_line_id)
        if line is None or not line.serial_number:
            continue
        if request.serial_number != line.serial_number:
            messages.append(f"Serial number mismatch for line {request.sale_line_id}")

    if messages:
        raise fail(
            ErrorCatalog.RETURN_NOT_ELIGIBLE,
            *messages,
            sale_id=sale.id,
            sale_number=sale.sale_number,
        )


def return_eligibility(sale: PersistedSale) -> ReturnEligibility:
    blocked = _blocked_reason(sale)
    if blocked:
        return ReturnEligibility(eligible=False, reason=blocked)
    returnable = [
        LineReturnState(
            sale_line_id=line.id,
            quantity=line.quantity,
            quantity_returned=line.quantity_returned,
            return_status=line.return_status,
        )
        for line in sale.line_items
        if line.return_status != "fully_returned" and _remaining_quantity(line) > 0
    ]
    if not returnable:
        return ReturnEligibility(eligible=False, reason="All items have been fully returned")
    return ReturnEligibility(eligible=True, returnable_lines=returnable)


def apply_return_to_lines(
    sale: PersistedSale, requests: list[ReturnRequestItem]
) -> tuple[list[LineReturnState], str]:
    """Line return statuses and sale status once `requests` are accepted."""
    requested = _requested_quantities(requests)
    states = []
    for line in sale.line_items:
        returned = min(line.quantity, line.quantity_returned + requested.get(line.id, 0))
        if returned >= line.quantity:
            status = "fully_returned"
        elif returned > 0:
            status = "partially_returned"
        else:
            status = "not_returned"
        states.append(
            LineReturnState(
                sale_line_id=line.id,
                quantity=line.quantity,
                quantity_returned=returned,
                return_status=status,
            )
        )
    if states and all(state.return_status == "fully_returned" for state in states):
        return states, "refunded"
    return states, sale.status


def quote_sale_return(sale: PersistedSale, requests: list[ReturnRequestItem], now: datetime) -> ReturnComputation:
    """Price a return against the sold lines without issuing a return number."""
    check_return_eligibility(sale, requests)
    lines = {line.id: line for line in sale.line_items}
    quote_items = [
        ReturnQuoteItem(
            sale_line_id=request.sale_line_id,
            unit_price=lines[request.sale_line_id].unit_price,
            quantity=request.quantity,
            condition=request.condition,
        )
        for request in requests
    ]
    return compute_return(sale.sale_date, quote_items, now)


def build_sale_return(
    sale: PersistedSale,
    requests: list[ReturnRequestItem],
    numbers: DocumentNumbers,
    *,
    reason: ReturnReason = "customer_request",
    refund_method: RefundMethod = "cash",
    now: datetime | None = None,
) -> SaleReturnRecord:
    now = now or datetime.now(timezone.utc)
    computation = quote_sale_return(sale, requests, now)
    line_states, sale_status = apply_return_to_lines(sale, requests)

    record = SaleReturnRecord(
        return_number=numbers.sale_return.next(),
        sale_id=sale.id,
        sale_number=sale.sale_number,
        reason=reason,
        refund_method=refund_method,
        returned_items=requests,
        original_amount=computation.original_amount,
        restocking_fee=computation.restocking_fee,
        refund_amount=computation.refund_amount,
        computation=computation,
        line_states=line_states,
        sale_status=sale_status,
    )
    log_json(
        logger,
        {
            "event": "sale_return_built",
            "return_number": record.return_number,
            "sale_number": sale.sale_number,
            "items": len(requests),
            "original_amount": str(record.original_amount),
            "restocking_fee": str(record.restocking_fee),
            "refund_amount": str(record.refund_amount),
            "sale_status": sale_status,
        },
    )
    return record
