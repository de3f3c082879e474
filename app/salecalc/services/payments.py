from __future__ import annotations

from decimal import Decimal

from app.salecalc.core.error_catalog import ErrorCatalog, fail
from app.salecalc.schemas.payments import (
    PAYMENT_CHANNELS,
    PaymentChannel,
    PaymentReconciliation,
    PaymentSplit,
)
from app.salecalc.services.money import MONEY_TOLERANCE, ZERO, format_money, quantize_money, sum_money, to_decimal

PAYMENT_MISMATCH = "PaymentMismatch"


def _require_total(total_amount) -> Decimal:
    total = quantize_money(total_amount)
    if total < 0:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "total_amount must be >= 0", total_amount=str(total))
    return total


def _require_channel(channel) -> PaymentChannel:
    if channel not in PAYMENT_CHANNELS:
        raise fail(ErrorCatalog.VALIDATION_ERROR, f"unsupported payment channel: {channel}", channel=str(channel))
    return channel


def _validate_split(split: PaymentSplit) -> PaymentSplit:
    errors = [
        f"{channel} amount must be >= 0"
        for channel in PAYMENT_CHANNELS
        if to_decimal(split.amount_for(channel)) < 0
    ]
    if errors:
        raise fail(ErrorCatalog.VALIDATION_ERROR, *errors)
    return split


def split_total(split: PaymentSplit) -> Decimal:
    return sum_money(split.amount_for(channel) for channel in PAYMENT_CHANNELS)


def normalize_single_payment(total_amount, method: PaymentChannel) -> PaymentSplit:
    total = _require_total(total_amount)
    method = _require_channel(method)
    amounts = {channel: ZERO for channel in PAYMENT_CHANNELS}
    amounts[method] = total
    return PaymentSplit(**amounts)


def _resolve_single_method(split: PaymentSplit, method: PaymentChannel | None) -> PaymentChannel:
    if method is not None:
        return _require_channel(method)
    used = [channel for channel in PAYMENT_CHANNELS if split.amount_for(channel) > 0]
    if len(used) == 1:
        return used[0]
    raise fail(ErrorCatalog.VALIDATION_ERROR, "payment method is required for single payments")


def reconcile_payment(
    total_amount,
    payment_type: str,
    payment_split: PaymentSplit | None = None,
    method: PaymentChannel | None = None,
) -> PaymentReconciliation:
    """Check a payment split against a sale total.

    A single payment is normalized onto its channel and is always valid. A
    hybrid payment is valid only when the channels add up to the total
    within MONEY_TOLERANCE; a mismatch is reported, never corrected.
    """
    total = _require_total(total_amount)
    split = _validate_split(payment_split or PaymentSplit())

    if payment_type == "single":
        resolved = _resolve_single_method(split, method)
        normalized = normalize_single_payment(total, resolved)
        return PaymentReconciliation(
            valid=True,
            payment_type="single",
            method=resolved,
            total_amount=total,
            paid_total=total,
            difference=ZERO,
            payment_split=normalized,
        )

    if payment_type != "hybrid":
        raise fail(ErrorCatalog.VALIDATION_ERROR, f"unsupported payment type: {payment_type}")

    raw_paid = sum((to_decimal(split.amount_for(channel)) for channel in PAYMENT_CHANNELS), ZERO)
    valid = abs(raw_paid - to_decimal(total_amount)) < MONEY_TOLERANCE
    paid_total = quantize_money(raw_paid)
    difference = quantize_money(raw_paid - to_decimal(total_amount))
    return PaymentReconciliation(
        valid=valid,
        error=None if valid else PAYMENT_MISMATCH,
        payment_type="hybrid",
        total_amount=total,
        paid_total=paid_total,
        difference=difference,
        payment_split=split,
    )


def require_reconciled_payment(
    total_amount,
    payment_type: str,
    payment_split: PaymentSplit | None = None,
    method: PaymentChannel | None = None,
) -> PaymentReconciliation:
    result = reconcile_payment(total_amount, payment_type, payment_split, method)
    if not result.valid:
        raise fail(
            ErrorCatalog.PAYMENT_MISMATCH,
            f"Hybrid payment totals {format_money(result.paid_total)} "
            f"but the sale total is {format_money(result.total_amount)}",
            total_amount=format_money(result.total_amount),
            paid_total=format_money(result.paid_total),
            difference=format_money(result.difference),
        )
    return result


def pay_remainder(total_amount, payment_split: PaymentSplit, channel: PaymentChannel) -> PaymentSplit:
    """Fill `channel` with whatever the other channels leave unpaid."""
    total = _require_total(total_amount)
    channel = _require_channel(channel)
    split = _validate_split(payment_split)
    others = sum_money(split.amount_for(other) for other in PAYMENT_CHANNELS if other != channel)
    remaining = quantize_money(total - others)
    remaining = max(ZERO, min(remaining, total))
    return split.model_copy(update={channel: remaining})
