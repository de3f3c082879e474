from __future__ import annotations

import logging

from app.salecalc.core.config import settings
from app.salecalc.core.error_catalog import AppError
from app.salecalc.core.logging import log_json
from app.salecalc.core.metrics import metrics
from app.salecalc.schemas.payments import PAYMENT_CHANNELS
from app.salecalc.schemas.receipts import ReceiptReport, ReceiptValidation, SaleItemsValidation
from app.salecalc.schemas.sales import PersistedSale
from app.salecalc.services.money import format_money, within_tolerance
from app.salecalc.services.payments import split_total
from app.salecalc.services.pricing import compute_sale_totals

logger = logging.getLogger("salecalc.receipts")

_COMPARED_FIELDS = (
    ("subtotal", "Subtotal", "subtotal"),
    ("discount_amount", "Discount", "discount_amount"),
    ("tax_amount", "Tax", "tax_amount"),
    ("total_amount", "Total", "final_total"),
)


def _report_drift(sale: PersistedSale, drifted: list[str], errors: list[str]) -> None:
    for field in drifted:
        metrics.increment_receipt_drift(field)
    if settings.RECEIPT_DRIFT_LOGGING:
        log_json(
            logger,
            {
                "event": "receipt_drift",
                "sale_id": sale.id,
                "sale_number": sale.sale_number,
                "fields": drifted,
                "errors": errors,
            },
            level=logging.WARNING,
        )


def validate_receipt(sale: PersistedSale) -> ReceiptValidation:
    """Recompute a persisted sale and compare it with what was stored.

    Never raises: a historical record must stay viewable, so every
    discrepancy, including a rule the stored data no longer satisfies, is
    returned as an error string.
    """
    if not sale.line_items:
        return ReceiptValidation(is_valid=False, errors=["No sale items found"])

    try:
        recomputed = compute_sale_totals(sale.line_items, sale.discount, sale.vat_included)
    except AppError as exc:
        errors = exc.messages or [exc.error.message]
        _report_drift(sale, ["recompute"], errors)
        return ReceiptValidation(is_valid=False, errors=errors)

    errors: list[str] = []
    drifted: list[str] = []
    for field, label, recomputed_field in _COMPARED_FIELDS:
        stored = getattr(sale, field)
        calculated = getattr(recomputed, recomputed_field)
        if not within_tolerance(stored, calculated):
            drifted.append(field)
            errors.append(
                f"{label} mismatch: calculated {format_money(calculated)}, stored {format_money(stored)}"
            )

    if any(sale.payment_split.amount_for(channel) for channel in PAYMENT_CHANNELS):
        paid = split_total(sale.payment_split)
        if not within_tolerance(paid, sale.total_amount):
            drifted.append("payment_split")
            errors.append(
                f"Payment sum mismatch: payments {format_money(paid)}, total {format_money(sale.total_amount)}"
            )

    if drifted:
        _report_drift(sale, drifted, errors)
    return ReceiptValidation(is_valid=not errors, errors=errors, recomputed=recomputed)


def validate_sale_items(sale: PersistedSale) -> SaleItemsValidation:
    if not sale.line_items:
        return SaleItemsValidation(is_valid=False, errors=["No sale items found"])

    errors = []
    for index, item in enumerate(sale.line_items, start=1):
        if not item.product_id:
            errors.append(f"Item {index}: Missing product ID")
        if item.quantity <= 0:
            errors.append(f"Item {index}: Invalid quantity")
        if item.unit_price < 0:
            errors.append(f"Item {index}: Invalid unit price")
        if item.serial_number and item.quantity != 1:
            errors.append(f"Item {index}: Serialized item must have quantity 1")
        if item.quantity_returned > item.quantity:
            errors.append(f"Item {index}: Returned quantity exceeds sold quantity")
    return SaleItemsValidation(is_valid=not errors, errors=errors)


def generate_receipt_report(sale: PersistedSale) -> ReceiptReport:
    calculations = validate_receipt(sale)
    items_validation = validate_sale_items(sale)
    overall_valid = calculations.is_valid and items_validation.is_valid

    label = sale.sale_number or sale.id or "-"
    if overall_valid:
        summary = (
            f"Receipt for sale {label}: Valid - {len(sale.line_items)} items, "
            f"Total: {format_money(calculations.recomputed.final_total)}"
        )
    else:
        total_errors = len(calculations.errors) + len(items_validation.errors)
        summary = f"Receipt for sale {label}: Invalid - {total_errors} error(s) found"

    return ReceiptReport(
        sale_number=sale.sale_number,
        calculations=calculations,
        items_validation=items_validation,
        overall_valid=overall_valid,
        summary=summary,
    )
