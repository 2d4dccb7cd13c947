# qbuilder/utils/decimal_utils.py
"""
Money arithmetic for quotes, projects and payments.

Amounts are Decimals quantised to two places (ROUND_HALF_UP); quantities
keep three places.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple

TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_quantity(value) -> Decimal:
    return Decimal(str(value)).quantize(THREEPLACES, rounding=ROUND_HALF_UP)


def line_total(quantity, unit_price) -> Decimal:
    return to_decimal(to_quantity(quantity) * to_decimal(unit_price))


def sum_amounts(amounts: Iterable) -> Decimal:
    return to_decimal(sum((to_decimal(a) for a in amounts), ZERO))


class QuoteTotals(NamedTuple):
    subtotal: Decimal
    vat_amount: Decimal
    total: Decimal


def quote_totals(line_totals: Iterable, vat_rate) -> QuoteTotals:
    subtotal = sum_amounts(line_totals)
    vat_amount = to_decimal(subtotal * Decimal(str(vat_rate)))
    return QuoteTotals(subtotal, vat_amount, to_decimal(subtotal + vat_amount))


def compute_balance(budget, total_paid) -> Decimal:
    return to_decimal(to_decimal(budget) - to_decimal(total_paid))


def percent_paid(budget, total_paid) -> Decimal:
    budget = to_decimal(budget)
    if budget == ZERO:
        return ZERO
    return to_decimal(to_decimal(total_paid) / budget * Decimal("100"))


class MethodBreakdown(NamedTuple):
    method: str
    total: Decimal
    count: int


class PaymentSummary(NamedTuple):
    total_amount: Decimal
    payment_count: int
    average_amount: Decimal
    method_breakdown: list[MethodBreakdown]


def payment_summary(payments: Iterable[tuple[str, Decimal]]) -> PaymentSummary:
    """``payments`` is an iterable of ``(method, amount)`` pairs."""
    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}

    for method, amount in payments:
        totals[method] = totals.get(method, ZERO) + to_decimal(amount)
        counts[method] = counts.get(method, 0) + 1

    total_amount = sum_amounts(totals.values())
    payment_count = sum(counts.values())
    average = to_decimal(total_amount / payment_count) if payment_count else ZERO

    return PaymentSummary(
        total_amount=total_amount,
        payment_count=payment_count,
        average_amount=average,
        method_breakdown=[
            MethodBreakdown(m, to_decimal(totals[m]), counts[m])
            for m in sorted(totals)
        ],
    )
