"""Lease schedule helpers: monthly due dates counted from the lease start date."""
from calendar import monthrange
from datetime import date


def add_months(start: date, months: int) -> date:
    """Same day of month `months` later, or the last day if that month is shorter."""
    month_index = start.month - 1 + months
    y = start.year + month_index // 12
    m = month_index % 12 + 1
    last = monthrange(y, m)[1]
    return date(y, m, min(start.day, last))


def due_date_for(lease_start_date: date, sequence_index: int) -> date:
    """Due date of installment `sequence_index` (0-based); always measured from the start, never chained."""
    return add_months(lease_start_date, sequence_index)


def get_due_dates(lease_start_date: date, lease_duration: int) -> list[date]:
    """All due dates of a lease, first one on the start date itself."""
    return [due_date_for(lease_start_date, i) for i in range(lease_duration)]


def month_key(d: date) -> str:
    """Reporting period key, e.g. 2024-03."""
    return f"{d.year:04d}-{d.month:02d}"
