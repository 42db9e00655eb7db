"""Redistribution of an overpayment onto later installments of the same lease, and its rollback."""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from leasedesk.core.audit_log import ReconciliationAuditLog
from leasedesk.core.payment_status import derive_status
from leasedesk.core.utils import ZERO, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credit:
    target_payment_id: UUID
    sequence_index: int
    amount: Decimal


@dataclass
class AllocationPlan:
    """What apply() will do. Computed without touching any payment."""
    source: object
    overpayment: Decimal
    grants: list[tuple[object, Decimal]] = field(default_factory=list)
    unallocated_excess: Decimal = ZERO

    @property
    def allocated(self) -> Decimal:
        return sum((amount for _, amount in self.grants), ZERO)


@dataclass(frozen=True)
class AllocationResult:
    credits: list[Credit]
    unallocated_excess: Decimal


class OverpaymentAllocator:
    def __init__(self, audit_log: ReconciliationAuditLog):
        self.audit_log = audit_log

    @staticmethod
    def eligible_targets(source, payments: Iterable) -> list:
        """Unpaid, still-owing installments after the source, earliest first."""
        return sorted(
            (
                p
                for p in payments
                if p.lease_id == source.lease_id
                and p.sequence_index > source.sequence_index
                and not p.paid_flag
                and p.effective_amount > ZERO
            ),
            key=lambda p: p.sequence_index,
        )

    def plan(self, source, payments: Iterable, overpayment: Decimal) -> AllocationPlan:
        """
        Cascade the overpayment over eligible targets: each takes min(remaining, its effective amount)
        until nothing remains or no target is left. Whatever is left is unallocated excess.
        """
        remaining = to_money(overpayment)
        plan = AllocationPlan(source=source, overpayment=remaining)
        if remaining <= ZERO:
            return plan
        for target in self.eligible_targets(source, payments):
            if remaining <= ZERO:
                break
            amount = min(remaining, target.effective_amount)
            plan.grants.append((target, amount))
            remaining -= amount
        plan.unallocated_excess = remaining
        return plan

    def apply(self, plan: AllocationPlan, actor: str, at: datetime, today: date) -> AllocationResult:
        credits = []
        for target, amount in plan.grants:
            target.credited_amount = to_money(target.credited_amount or ZERO) + amount
            self.audit_log.record_credit(target, plan.source, amount, derive_status(target, today), actor, at)
            credits.append(Credit(target.id, target.sequence_index, amount))
        if plan.grants:
            logger.info(
                "Overpayment allocated: source_payment_id=%s overpayment=%s credits=%s unallocated=%s",
                plan.source.id,
                plan.overpayment,
                [(c.sequence_index, str(c.amount)) for c in credits],
                plan.unallocated_excess,
            )
        if plan.unallocated_excess > ZERO:
            logger.warning(
                "Overpayment exceeds remaining installments: source_payment_id=%s unallocated=%s",
                plan.source.id,
                plan.unallocated_excess,
            )
        return AllocationResult(credits=credits, unallocated_excess=plan.unallocated_excess)

    def allocate(self, source, payments: Iterable, overpayment: Decimal, actor: str, at: datetime, today: date) -> AllocationResult:
        return self.apply(self.plan(source, payments, overpayment), actor, at, today)

    def rollback(self, source, payments: Iterable, actor: str, at: datetime, today: date) -> list[Credit]:
        """
        Withdraw every credit the source payment still has outstanding on other installments.
        A target may come back as overdue once its effective amount rises again.
        """
        by_id = {p.id: p for p in payments}
        reversed_credits = []
        outstanding = self.audit_log.outstanding_credits(source.id)
        for target_id, amount in sorted(outstanding.items(), key=lambda item: by_id[item[0]].sequence_index):
            target = by_id[target_id]
            before = derive_status(target, today)
            target.credited_amount = max(ZERO, to_money(target.credited_amount or ZERO) - amount)
            after = derive_status(target, today)
            if target.paid_flag:
                logger.warning(
                    "Credit withdrawn from an installment already paid: source_payment_id=%s target_payment_id=%s amount=%s",
                    source.id,
                    target.id,
                    amount,
                )
            self.audit_log.record_credit_reversal(target, source, amount, before, after, actor, at)
            reversed_credits.append(Credit(target.id, target.sequence_index, amount))
        return reversed_credits
