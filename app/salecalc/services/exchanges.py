from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from app.salecalc.core.error_catalog import ErrorCatalog, fail
from app.salecalc.core.logging import log_json
from app.salecalc.schemas.exchanges import ExchangeRecord, ExchangeSettlement, TradeInValue
from app.salecalc.schemas.payments import PaymentChannel, PaymentSplit, PaymentType
from app.salecalc.schemas.returns import ReturnReason, ReturnRequestItem
from app.salecalc.schemas.sales import LineItem, PersistedSale
from app.salecalc.services.money import ZERO, quantize_money
from app.salecalc.services.numbering import DocumentNumbers
from app.salecalc.services.payments import require_reconciled_payment
from app.salecalc.services.pricing import check_unique_serials, compute_sale_totals
from app.salecalc.services.returns import build_sale_return, quote_sale_return

logger = logging.getLogger("salecalc.exchanges")

TRADE_IN_MULTIPLIERS = {
    "excellent": Decimal("0.75"),
    "good": Decimal("0.60"),
    "fair": Decimal("0.45"),
    "poor": Decimal("0.30"),
}


def compute_exchange(return_refund_amount, new_items_total) -> ExchangeSettlement:
    refund = quantize_money(return_refund_amount)
    new_total = quantize_money(new_items_total)
    if refund < 0 or new_total < 0:
        raise fail(
            ErrorCatalog.VALIDATION_ERROR,
            "exchange amounts must be >= 0",
            return_refund_amount=str(refund),
            new_items_total=str(new_total),
        )
    net_difference = quantize_money(new_total - refund)

    if net_difference > 0:
        additional_payment, refund_issued, credit_applied = net_difference, ZERO, refund
    elif net_difference < 0:
        additional_payment, refund_issued, credit_applied = ZERO, -net_difference, new_total
    else:
        additional_payment, refund_issued, credit_applied = ZERO, ZERO, refund

    return ExchangeSettlement(
        return_refund_amount=refund,
        new_items_total=new_total,
        net_difference=net_difference,
        additional_payment=additional_payment,
        refund_issued=refund_issued,
        credit_applied=credit_applied,
        customer_pays=net_difference > 0,
        customer_receives=net_difference < 0,
        even_exchange=net_difference == 0,
    )


def build_exchange(
    sale: PersistedSale,
    return_items: list[ReturnRequestItem],
    new_items: list[LineItem],
    numbers: DocumentNumbers,
    *,
    reason: ReturnReason = "customer_request",
    payment_type: PaymentType = "single",
    payment_method: PaymentChannel | None = None,
    payment_split: PaymentSplit | None = None,
    now: datetime | None = None,
) -> ExchangeRecord:
    """Return part of a sale and settle it against a new purchase.

    New items are priced like any sale (no discount) under the original
    sale's VAT regime, so both sides of the exchange share one tax basis.
    Any additional payment must be settled in full by the given payment;
    when the customer is owed money no payment is taken.
    """
    now = now or datetime.now(timezone.utc)
    if not new_items:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "new_items must not be empty")
    check_unique_serials(new_items)

    new_totals = compute_sale_totals(new_items, None, sale.vat_included)
    quote = quote_sale_return(sale, return_items, now)
    settlement = compute_exchange(quote.refund_amount, new_totals.final_total)
    payment = None
    if settlement.additional_payment > 0:
        payment = require_reconciled_payment(
            settlement.additional_payment,
            payment_type,
            payment_split,
            payment_method,
        )

    sale_return = build_sale_return(
        sale,
        return_items,
        numbers,
        reason=reason,
        refund_method="exchange",
        now=now,
    )

    record = ExchangeRecord(
        exchange_number=numbers.exchange.next(),
        sale_return=sale_return,
        new_items=new_items,
        new_items_totals=new_totals,
        settlement=settlement,
        payment=payment,
    )
    log_json(
        logger,
        {
            "event": "exchange_built",
            "exchange_number": record.exchange_number,
            "return_number": sale_return.return_number,
            "sale_number": sale.sale_number,
            "net_difference": str(settlement.net_difference),
            "additional_payment": str(settlement.additional_payment),
            "refund_issued": str(settlement.refund_issued),
            "payment_type": payment.payment_type if payment else None,
        },
    )
    return record


def assess_trade_in_value(base_price, condition: str) -> TradeInValue:
    """Suggested credit for a trade-in, in whole currency units; clerks may override it."""
    price = quantize_money(base_price)
    if price < 0:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "base_price must be >= 0", base_price=str(price))
    try:
        multiplier = TRADE_IN_MULTIPLIERS[condition]
    except KeyError:
        raise fail(ErrorCatalog.VALIDATION_ERROR, f"unsupported trade-in condition: {condition}") from None
    suggested = (price * multiplier).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return TradeInValue(
        base_price=price,
        condition=condition,
        multiplier=multiplier,
        suggested_value=quantize_money(suggested),
    )
