import pytest

from backend.core.dates import (
    day_key,
    days_in_range,
    last_n_days,
    month_key,
    parse_day_key,
    shift_days,
    validate_month_key,
    validate_week_key,
    week_key,
)
from backend.core.errors import InvalidDateKeyError, ValidationError


def test_week_key_uses_iso_week_year():
    assert week_key("2024-03-14") == "2024-W11"
    # 2021-01-03 is a Sunday that still belongs to ISO week 53 of 2020
    assert week_key("2021-01-03") == "2020-W53"
    assert week_key("2024-12-30") == "2025-W01"


def test_month_key():
    assert month_key("2024-03-14") == "2024-03"


@pytest.mark.parametrize("bad", ["2024-3-14", "2024-02-30", "14/03/2024", "", None])
def test_invalid_day_keys_are_rejected(bad):
    with pytest.raises(InvalidDateKeyError):
        parse_day_key(bad)


def test_invalid_date_key_is_a_validation_error():
    with pytest.raises(ValidationError):
        day_key("not-a-date")


def test_week_and_month_validation():
    assert validate_week_key("2020-W53") == "2020-W53"
    assert validate_month_key("2024-12") == "2024-12"
    with pytest.raises(InvalidDateKeyError):
        validate_week_key("2024-W54")
    with pytest.raises(InvalidDateKeyError):
        validate_week_key("2024-11")
    with pytest.raises(InvalidDateKeyError):
        validate_month_key("2024-13")


def test_lexical_order_matches_chronological_order():
    days = days_in_range("2023-12-25", "2024-01-10")
    assert days == sorted(days)
    weeks = [week_key(d) for d in days]
    assert weeks == sorted(weeks)


def test_ranges():
    assert shift_days("2024-03-01", -1) == "2024-02-29"
    assert days_in_range("2024-03-02", "2024-03-01") == []
    assert last_n_days(3, "2024-03-01") == ["2024-02-28", "2024-02-29", "2024-03-01"]
