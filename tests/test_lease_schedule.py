from datetime import date

from leasedesk.core.lease_schedule import add_months, due_date_for, get_due_dates, month_key


def test_add_months_keeps_day_of_month():
    assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 1, 31), 3) == date(2024, 4, 30)


def test_due_dates_are_measured_from_start_not_chained():
    # Chaining would drift 01-31 -> 02-29 -> 03-29.
    assert get_due_dates(date(2024, 1, 31), 3) == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
    assert due_date_for(date(2024, 1, 31), 2) == date(2024, 3, 31)


def test_first_due_date_is_start_date():
    assert get_due_dates(date(2024, 5, 10), 1) == [date(2024, 5, 10)]


def test_month_key():
    assert month_key(date(2024, 3, 9)) == "2024-03"
