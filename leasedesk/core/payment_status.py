"""Live payment status, derived from the paid flag and the due date at read time."""
from datetime import date, datetime

from leasedesk.models.enums import PaymentStatus


def as_date(now: date | datetime) -> date:
    return now.date() if isinstance(now, datetime) else now


def derive_status(payment, now: date | datetime) -> PaymentStatus:
    """
    paid if the paid flag is set (sticky, never reverts by itself);
    otherwise overdue once the due date is strictly before today, else pending.
    A payment due today is still pending.
    """
    if payment.paid_flag:
        return PaymentStatus.paid
    if payment.due_date < as_date(now):
        return PaymentStatus.overdue
    return PaymentStatus.pending


def days_overdue(payment, now: date | datetime) -> int:
    """Days past due for an unpaid installment, 0 otherwise."""
    if derive_status(payment, now) != PaymentStatus.overdue:
        return 0
    return (as_date(now) - payment.due_date).days
