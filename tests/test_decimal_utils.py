from decimal import Decimal

from qbuilder.utils.decimal_utils import (
    compute_balance,
    line_total,
    payment_summary,
    percent_paid,
    quote_totals,
    to_decimal,
    to_quantity,
)


def test_to_decimal_rounds_half_up():
    assert to_decimal("10.005") == Decimal("10.01")
    assert to_decimal(2.675) == Decimal("2.68")
    assert to_decimal(None) == Decimal("0.00")


def test_to_quantity_keeps_three_places():
    assert to_quantity("1.2345") == Decimal("1.235")
    assert to_quantity(2) == Decimal("2.000")


def test_line_total():
    assert line_total("2", "100.50") == Decimal("201.00")
    assert line_total("1.5", "80") == Decimal("120.00")
    assert line_total("0.333", "10") == Decimal("3.33")


def test_quote_totals_with_vat():
    totals = quote_totals([Decimal("201.00"), Decimal("120.00")], Decimal("0.18"))

    assert totals.subtotal == Decimal("321.00")
    assert totals.vat_amount == Decimal("57.78")
    assert totals.total == Decimal("378.78")


def test_quote_totals_without_vat():
    totals = quote_totals([Decimal("99.99")], 0)
    assert totals.vat_amount == Decimal("0.00")
    assert totals.total == Decimal("99.99")


def test_balance_and_percent_paid():
    assert compute_balance("1000", "400") == Decimal("600.00")
    assert percent_paid("1000", "400") == Decimal("40.00")
    assert percent_paid("300", "100") == Decimal("33.33")


def test_percent_paid_with_zero_budget():
    assert percent_paid(0, 0) == Decimal("0.00")


def test_payment_summary_groups_by_method():
    summary = payment_summary(
        [
            ("cash", Decimal("100")),
            ("bank_transfer", Decimal("250.50")),
            ("cash", Decimal("50")),
        ]
    )

    assert summary.total_amount == Decimal("400.50")
    assert summary.payment_count == 3
    assert summary.average_amount == Decimal("133.50")
    assert [(b.method, b.total, b.count) for b in summary.method_breakdown] == [
        ("bank_transfer", Decimal("250.50"), 1),
        ("cash", Decimal("150.00"), 2),
    ]


def test_payment_summary_empty():
    summary = payment_summary([])
    assert summary.payment_count == 0
    assert summary.average_amount == Decimal("0.00")
    assert summary.method_breakdown == []
