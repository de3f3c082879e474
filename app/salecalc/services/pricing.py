"""Sale totals: tax decomposition, discount application and their composition.

The arithmetic runs strictly top-down (decompose, then discount) and every
intermediate amount is quantized to cents before it is used again, so the
same line items, discount and VAT flag always yield the same totals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from app.salecalc.core.error_catalog import ErrorCatalog, fail
from app.salecalc.schemas.sales import AmountDiscount, LineItem, PercentageDiscount, SaleTotals
from app.salecalc.services.money import TAX_RATE, ZERO, quantize_money, sum_money, to_decimal

MAX_PERCENTAGE = Decimal("100")


@dataclass(frozen=True)
class PriceBreakdown:
    base: Decimal
    tax: Decimal

    @property
    def gross(self) -> Decimal:
        return self.base + self.tax


@dataclass(frozen=True)
class DiscountOutcome:
    total_before_discount: Decimal
    discount_amount: Decimal
    final_subtotal: Decimal
    tax_amount: Decimal
    final_total: Decimal


def decompose_price(amount, vat_included: bool, rate: Decimal = TAX_RATE) -> PriceBreakdown:
    """Split an entered amount into its tax-exclusive base and tax."""
    amount = quantize_money(amount)
    if amount < 0:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "amount must be >= 0", amount=str(amount))
    if vat_included:
        base = quantize_money(amount / (1 + rate))
        tax = quantize_money(amount - base)
    else:
        base = amount
        tax = quantize_money(amount * rate)
    return PriceBreakdown(base=base, tax=tax)


def compose_price(base, vat_included: bool, rate: Decimal = TAX_RATE) -> Decimal:
    """Inverse of decompose_price: the amount a clerk would enter for a base."""
    base = quantize_money(base)
    if base < 0:
        raise fail(ErrorCatalog.VALIDATION_ERROR, "base must be >= 0", base=str(base))
    if vat_included:
        return quantize_money(base * (1 + rate))
    return base


def validate_discount(discount) -> None:
    if discount is None:
        return
    if isinstance(discount, PercentageDiscount):
        value = to_decimal(discount.value)
        if value < 0 or value > MAX_PERCENTAGE:
            raise fail(
                ErrorCatalog.INVALID_DISCOUNT,
                "percentage discount must be between 0 and 100",
                kind="percentage",
                value=str(value),
            )
        return
    if isinstance(discount, AmountDiscount):
        value = to_decimal(discount.value)
        if value < 0:
            raise fail(
                ErrorCatalog.INVALID_DISCOUNT,
                "amount discount must be >= 0",
                kind="amount",
                value=str(value),
            )
        return
    raise fail(
        ErrorCatalog.INVALID_DISCOUNT,
        "unsupported discount kind",
        kind=getattr(discount, "kind", type(discount).__name__),
    )


def apply_discount(subtotal, tax_amount, discount, rate: Decimal = TAX_RATE) -> DiscountOutcome:
    """Apply at most one discount to a decomposed subtotal.

    A percentage discount reduces the tax base and tax is recomputed on what
    remains. A fixed amount comes off the tax-inclusive total and leaves the
    reported tax untouched; it is clamped to the pre-discount total.
    """
    validate_discount(discount)
    subtotal = quantize_money(subtotal)
    tax_amount = quantize_money(tax_amount)
    total_before_discount = quantize_money(subtotal + tax_amount)

    if isinstance(discount, PercentageDiscount) and to_decimal(discount.value) > 0:
        discount_amount = quantize_money(subtotal * to_decimal(discount.value) / 100)
        final_subtotal = quantize_money(subtotal - discount_amount)
        final_tax = quantize_money(final_subtotal * rate)
        return DiscountOutcome(
            total_before_discount=total_before_discount,
            discount_amount=discount_amount,
            final_subtotal=final_subtotal,
            tax_amount=final_tax,
            final_total=quantize_money(final_subtotal + final_tax),
        )

    if isinstance(discount, AmountDiscount) and to_decimal(discount.value) > 0:
        discount_amount = min(quantize_money(discount.value), total_before_discount)
        final_total = quantize_money(total_before_discount - discount_amount)
        return DiscountOutcome(
            total_before_discount=total_before_discount,
            discount_amount=discount_amount,
            final_subtotal=quantize_money(final_total - tax_amount),
            tax_amount=tax_amount,
            final_total=final_total,
        )

    return DiscountOutcome(
        total_before_discount=total_before_discount,
        discount_amount=ZERO,
        final_subtotal=subtotal,
        tax_amount=tax_amount,
        final_total=total_before_discount,
    )


def line_item_errors(line_items: Iterable[LineItem]) -> list[str]:
    errors: list[str] = []
    for index, item in enumerate(line_items, start=1):
        label = item.id or item.product_id or f"#{index}"
        if item.quantity < 1:
            errors.append(f"Item {label}: quantity must be at least 1")
        if to_decimal(item.unit_price) < 0:
            errors.append(f"Item {label}: unit_price must be >= 0")
        if item.serial_number and item.quantity != 1:
            errors.append(f"Item {label}: quantity must be 1 for serialized items")
    return errors


def validate_line_items(line_items: Iterable[LineItem]) -> None:
    errors = line_item_errors(line_items)
    if errors:
        raise fail(ErrorCatalog.VALIDATION_ERROR, *errors)


def check_unique_serials(line_items: Iterable[LineItem]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for item in line_items:
        serial = item.serial_number
        if not serial:
            continue
        if serial in seen and serial not in duplicates:
            duplicates.append(serial)
        seen.add(serial)
    if duplicates:
        raise fail(
            ErrorCatalog.DUPLICATE_SERIAL_IN_SALE,
            *[f"Serial number {serial} appears more than once" for serial in duplicates],
            serial_numbers=duplicates,
        )


def line_total(item: LineItem) -> Decimal:
    return quantize_money(to_decimal(item.unit_price) * item.quantity)


def items_total(line_items: Iterable[LineItem]) -> Decimal:
    return sum_money(line_total(item) for item in line_items)


def compute_sale_totals(line_items: list[LineItem], discount, vat_included: bool) -> SaleTotals:
    validate_line_items(line_items)
    validate_discount(discount)

    gross = items_total(line_items)
    breakdown = decompose_price(gross, vat_included)
    outcome = apply_discount(breakdown.base, breakdown.tax, discount)
    return SaleTotals(
        items_total=gross,
        subtotal=breakdown.base,
        total_before_discount=outcome.total_before_discount,
        discount_amount=outcome.discount_amount,
        final_subtotal=outcome.final_subtotal,
        tax_amount=outcome.tax_amount,
        final_total=outcome.final_total,
    )
