from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.salecalc.core.error_catalog import ErrorCatalog, fail
from app.salecalc.core.logging import log_json
from app.salecalc.schemas.sales import PersistedSale, PersistedSaleLine, SaleDraft
from app.salecalc.services.numbering import DocumentNumbers
from app.salecalc.services.payments import require_reconciled_payment
from app.salecalc.services.pricing import check_unique_serials, compute_sale_totals, validate_line_items

logger = logging.getLogger("salecalc.sales")


def submit_sale(draft: SaleDraft, numbers: DocumentNumbers, now: datetime | None = None) -> PersistedSale:
    """Turn a composed sale into the record the caller persists verbatim."""
    if not draft.line_items:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "line_items must not be empty")
    validate_line_items(draft.line_items)
    check_unique_serials(draft.line_items)

    totals = compute_sale_totals(draft.line_items, draft.discount, draft.vat_included)
    payment = require_reconciled_payment(
        totals.final_total,
        draft.payment_type,
        draft.payment_split,
        draft.payment_method,
    )

    lines = [
        PersistedSaleLine(
            id=item.id or numbers.line.next(),
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            serial_number=item.serial_number,
        )
        for item in draft.line_items
    ]
    sale = PersistedSale(
        sale_number=numbers.sale.next(),
        status="completed",
        sale_date=draft.sale_date or now or datetime.now(timezone.utc),
        line_items=lines,
        discount=draft.discount,
        vat_included=draft.vat_included,
        payment_type=draft.payment_type,
        payment_method=payment.method,
        payment_split=payment.payment_split,
        subtotal=totals.subtotal,
        discount_amount=totals.discount_amount,
        tax_amount=totals.tax_amount,
        total_amount=totals.final_total,
    )
    log_json(
        logger,
        {
            "event": "sale_submitted",
            "sale_number": sale.sale_number,
            "lines": len(lines),
            "vat_included": sale.vat_included,
            "payment_type": sale.payment_type,
            "total_amount": str(sale.total_amount),
        },
    )
    return sale
