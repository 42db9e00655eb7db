"""
Portfolio figures computed on demand from leases, their payments and the audit log.

Nothing here is persisted: every figure is recomputed per query with a single
reading of the clock, so one report never mixes two notions of "today".
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID

from leasedesk.core.audit_log import ReconciliationAuditLog
from leasedesk.core.clock import Clock
from leasedesk.core.exceptions import ConservationError
from leasedesk.core.lease_schedule import month_key
from leasedesk.core.payment_status import derive_status
from leasedesk.core.utils import ZERO, to_money
from leasedesk.models.enums import PaymentStatus

# (lease, its payments)
LeaseAccount = tuple[object, Sequence]


@dataclass(frozen=True)
class LeaseFigures:
    lease_id: UUID
    expected_total: Decimal
    profit: Decimal
    collected: Decimal
    unpaid: Decimal
    overdue_count: int
    overdue_amount: Decimal
    credit_balance: Decimal
    paid_count: int
    fully_paid: bool


@dataclass(frozen=True)
class PortfolioFigures:
    lease_count: int
    active_leases: int
    total_invested: Decimal
    total_collected: Decimal
    total_profit: Decimal
    total_unpaid: Decimal
    overdue_count: int
    overdue_amount: Decimal
    fully_paid_customers: int
    credit_balance: Decimal
    monthly_payments: Decimal


@dataclass(frozen=True)
class BrandFigures:
    car_brand: str
    count: int
    total_invested: Decimal
    total_profit: Decimal


@dataclass(frozen=True)
class MonthFigures:
    period: str
    expected_amount: Decimal
    collected_amount: Decimal
    overdue_amount: Decimal


def collected_amount(payment) -> Decimal:
    """What a paid installment brought in: the recorded actual amount, else its scheduled amount."""
    if payment.actual_amount_paid is not None:
        return to_money(payment.actual_amount_paid)
    return to_money(payment.scheduled_amount)


def expected_total(lease) -> Decimal:
    return to_money(lease.monthly_installment) * int(lease.lease_duration)


def lease_profit(lease) -> Decimal:
    """Expected margin: installment x duration - amount financed, regardless of what was collected."""
    return expected_total(lease) - to_money(lease.leasing_amount)


def _in_window(d: date | None, start: date | None, end: date | None) -> bool:
    if d is None:
        return False
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True


class FinancialAggregator:
    def __init__(self, clock: Clock):
        self.clock = clock

    def lease_figures(self, lease, payments: Sequence, today: date | None = None) -> LeaseFigures:
        today = today or self.clock.today()
        collected = unpaid = overdue_amount = credit = ZERO
        overdue_count = paid_count = 0
        for p in payments:
            status = derive_status(p, today)
            if status == PaymentStatus.paid:
                paid_count += 1
                collected += collected_amount(p)
                credit += to_money(p.unallocated_excess or ZERO)
                continue
            unpaid += p.effective_amount
            if status == PaymentStatus.overdue:
                overdue_count += 1
                overdue_amount += p.effective_amount
        return LeaseFigures(
            lease_id=lease.id,
            expected_total=expected_total(lease),
            profit=lease_profit(lease),
            collected=collected,
            unpaid=unpaid,
            overdue_count=overdue_count,
            overdue_amount=overdue_amount,
            credit_balance=credit,
            paid_count=paid_count,
            fully_paid=bool(payments) and paid_count == len(payments),
        )

    def portfolio(
        self,
        accounts: Iterable[LeaseAccount],
        start: date | None = None,
        end: date | None = None,
    ) -> PortfolioFigures:
        """
        Leases count when their start date falls in [start, end]; payments count when
        their due date does. Without a window, everything counts.
        """
        today = self.clock.today()
        windowed = start is not None or end is not None
        lease_count = active = fully_paid = overdue_count = 0
        invested = collected = profit = unpaid = overdue_amount = credit = monthly = ZERO

        for lease, payments in accounts:
            lease_in_scope = not windowed or _in_window(lease.lease_start_date, start, end)
            if lease_in_scope:
                lease_count += 1
                invested += to_money(lease.leasing_amount)
                profit += lease_profit(lease)
                figures = self.lease_figures(lease, payments, today)
                if figures.fully_paid:
                    fully_paid += 1
                else:
                    active += 1

            for p in payments:
                if p.paid_flag and p.payment_date is not None and (p.payment_date.year, p.payment_date.month) == (
                    today.year,
                    today.month,
                ):
                    monthly += collected_amount(p)
                if windowed and not _in_window(p.due_date, start, end):
                    continue
                status = derive_status(p, today)
                if status == PaymentStatus.paid:
                    collected += collected_amount(p)
                    credit += to_money(p.unallocated_excess or ZERO)
                    continue
                unpaid += p.effective_amount
                if status == PaymentStatus.overdue:
                    overdue_count += 1
                    overdue_amount += p.effective_amount

        return PortfolioFigures(
            lease_count=lease_count,
            active_leases=active,
            total_invested=invested,
            total_collected=collected,
            total_profit=profit,
            total_unpaid=unpaid,
            overdue_count=overdue_count,
            overdue_amount=overdue_amount,
            fully_paid_customers=fully_paid,
            credit_balance=credit,
            monthly_payments=monthly,
        )

    def by_car_brand(self, accounts: Iterable[LeaseAccount]) -> list[BrandFigures]:
        counts: dict[str, int] = defaultdict(int)
        invested: dict[str, Decimal] = defaultdict(lambda: ZERO)
        profit: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for lease, _ in accounts:
            brand = (lease.car_brand or "").strip() or "Unknown"
            counts[brand] += 1
            invested[brand] += to_money(lease.leasing_amount)
            profit[brand] += lease_profit(lease)
        return [
            BrandFigures(car_brand=b, count=counts[b], total_invested=invested[b], total_profit=profit[b])
            for b in sorted(counts, key=lambda b: (-counts[b], b))
        ]

    def monthly(self, accounts: Iterable[LeaseAccount]) -> list[MonthFigures]:
        """Expected and overdue amounts by due month; collected amounts by the month they were paid."""
        today = self.clock.today()
        expected: dict[str, Decimal] = defaultdict(lambda: ZERO)
        collected: dict[str, Decimal] = defaultdict(lambda: ZERO)
        overdue: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for _, payments in accounts:
            for p in payments:
                due_key = month_key(p.due_date)
                expected[due_key] += to_money(p.scheduled_amount)
                status = derive_status(p, today)
                if status == PaymentStatus.paid:
                    collected[month_key(p.payment_date or p.due_date)] += collected_amount(p)
                elif status == PaymentStatus.overdue:
                    overdue[due_key] += p.effective_amount
        periods = sorted(set(expected) | set(collected) | set(overdue))
        return [
            MonthFigures(
                period=k,
                expected_amount=expected[k],
                collected_amount=collected[k],
                overdue_amount=overdue[k],
            )
            for k in periods
        ]


def check_conservation(lease, payments: Sequence, audit_log: ReconciliationAuditLog) -> None:
    """
    Allocation only moves money between installments of a lease:
    sum of effective amounts plus outstanding credit must equal installment x duration,
    and each installment's credited amount must match the credit the log says it holds.
    """
    outstanding = audit_log.outstanding_credit_by_target(lease.id)
    for p in payments:
        held = outstanding.get(p.id, ZERO)
        if to_money(p.credited_amount or ZERO) != held:
            raise ConservationError(
                f"Payment {p.id} has credited_amount {p.credited_amount} but the audit log shows {held}"
            )
    granted = sum(outstanding.values(), ZERO)
    total = sum((p.effective_amount for p in payments), ZERO) + granted
    if total != expected_total(lease):
        raise ConservationError(
            f"Lease {lease.id}: effective {total - granted} + credit {granted} != expected {expected_total(lease)}"
        )
