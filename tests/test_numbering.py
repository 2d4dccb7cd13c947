from datetime import date

from qbuilder.services.numbering import (
    format_number,
    is_valid_number,
    next_number,
    year_from_number,
)


def test_format_number_pads_to_four_digits():
    assert format_number("Q", 2025, 7) == "Q-2025-0007"
    assert format_number("P", 2025, 12345) == "P-2025-12345"


def test_next_number_starts_at_one():
    assert next_number("Q", 2025, []) == "Q-2025-0001"


def test_next_number_follows_highest_not_count():
    existing = ["Q-2025-0001", "Q-2025-0007", "Q-2025-0003"]
    assert next_number("Q", 2025, existing) == "Q-2025-0008"


def test_next_number_ignores_other_years_and_prefixes():
    existing = ["Q-2024-0099", "P-2025-0042", "garbage", "Q-2025-0002"]
    assert next_number("Q", 2025, existing) == "Q-2025-0003"


def test_next_number_grows_past_9999():
    assert next_number("P", 2025, ["P-2025-9999"]) == "P-2025-10000"


def test_is_valid_number():
    assert is_valid_number("Q-2025-0001")
    assert is_valid_number("Q-2025-0001", prefix="Q")
    assert not is_valid_number("Q-2025-0001", prefix="P")
    assert not is_valid_number("Q-25-0001")
    assert not is_valid_number("Q-2025-01")
    assert not is_valid_number("")


def test_year_from_number():
    assert year_from_number("P-2023-0010") == 2023
    assert year_from_number("not-a-number") == date.today().year
