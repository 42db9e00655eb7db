from datetime import date, datetime
from decimal import Decimal

import pytest

from leasedesk.core.exceptions import AllocationOverflowError
from leasedesk.core.lease_locks import LeaseLocks
from leasedesk.core.overpayment import OverpaymentAllocator
from leasedesk.core.payment_ledger import PaymentLedger
from leasedesk.core.payment_status import derive_status
from leasedesk.models.enums import PaymentStatus
from tests.conftest import make_lease

ACTOR = "admin@leasedesk.test"


class TestCascade:
    def test_overpayment_cascades_in_sequence_order(self, ledger):
        lease = make_lease(duration=4)
        p0, p1, p2, p3 = ledger.schedule_payments(lease)

        result = ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="280")

        assert [(c.sequence_index, c.amount) for c in result.credits] == [(1, Decimal("100.00")), (2, Decimal("80.00"))]
        assert (p1.effective_amount, p2.effective_amount, p3.effective_amount) == (
            Decimal("0.00"),
            Decimal("20.00"),
            Decimal("100.00"),
        )

    def test_paid_installments_are_skipped(self, ledger, scheduled):
        _, (p0, p1, p2) = scheduled
        ledger.mark_paid(p1.id, date(2024, 1, 5), ACTOR)

        result = ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="150")

        assert [c.target_payment_id for c in result.credits] == [p2.id]
        assert p1.credited_amount == Decimal("0.00")
        assert p2.effective_amount == Decimal("50.00")

    def test_earlier_installments_never_receive_credit(self, ledger, scheduled):
        _, (p0, p1, p2) = scheduled
        result = ledger.mark_paid(p1.id, date(2024, 1, 5), ACTOR, actual_amount_paid="130")
        assert [c.target_payment_id for c in result.credits] == [p2.id]
        assert p0.credited_amount == Decimal("0.00")

    def test_fully_credited_installment_stays_unpaid_with_nothing_owed(self, ledger, clock):
        lease = make_lease(duration=2)
        p0, p1 = ledger.schedule_payments(lease)
        ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="200")

        assert p1.effective_amount == Decimal("0.00")
        assert derive_status(p1, clock.today()) == PaymentStatus.pending
        clock.set(date(2024, 3, 1))
        assert derive_status(p1, clock.today()) == PaymentStatus.overdue


class TestUnallocatedExcess:
    def test_excess_beyond_last_installment_is_returned(self, ledger, clock):
        lease = make_lease(duration=2)
        p0, p1 = ledger.schedule_payments(lease)

        result = ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="350")

        assert result.overpayment == Decimal("250.00")
        assert p1.effective_amount == Decimal("0.00")
        assert result.unallocated_excess == Decimal("150.00")
        assert p0.unallocated_excess == Decimal("150.00")

    def test_revert_clears_excess(self, ledger):
        lease = make_lease(duration=2)
        p0, p1 = ledger.schedule_payments(lease)
        ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="350")

        ledger.revert(p0.id, ACTOR)

        assert p0.unallocated_excess == Decimal("0.00")
        assert p1.effective_amount == Decimal("100.00")

    def test_overflow_rejected_when_excess_disallowed(self, clock, audit_log):
        ledger = PaymentLedger(clock, audit_log, locks=LeaseLocks(timeout=1.0), allow_unallocated_excess=False)
        lease = make_lease(duration=2)
        p0, p1 = ledger.schedule_payments(lease)

        with pytest.raises(AllocationOverflowError) as exc:
            ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="350")

        assert exc.value.unallocated_excess == Decimal("150.00")
        assert not p0.paid_flag
        assert p1.credited_amount == Decimal("0.00")
        assert len(audit_log) == 0

    def test_overpayment_on_last_installment_is_all_excess(self, ledger, scheduled):
        _, (_, _, p2) = scheduled
        result = ledger.mark_paid(p2.id, date(2024, 1, 5), ACTOR, actual_amount_paid="125")
        assert result.credits == []
        assert result.unallocated_excess == Decimal("25.00")


class TestAllocator:
    def test_plan_does_not_touch_payments(self, ledger, scheduled, audit_log):
        _, payments = scheduled
        allocator = OverpaymentAllocator(audit_log)

        plan = allocator.plan(payments[0], payments, Decimal("150"))

        assert plan.allocated == Decimal("150.00")
        assert [amount for _, amount in plan.grants] == [Decimal("100.00"), Decimal("50.00")]
        assert all(p.credited_amount == Decimal("0.00") for p in payments)
        assert len(audit_log) == 0

    def test_zero_overpayment_plans_nothing(self, scheduled, audit_log):
        _, payments = scheduled
        plan = OverpaymentAllocator(audit_log).plan(payments[0], payments, Decimal("0"))
        assert plan.grants == []
        assert plan.unallocated_excess == Decimal("0.00")

    def test_allocate_then_rollback(self, scheduled, audit_log):
        _, (p0, p1, p2) = scheduled
        allocator = OverpaymentAllocator(audit_log)
        at = datetime(2024, 1, 5, 12, 0)

        result = allocator.allocate(p0, scheduled[1], Decimal("120"), ACTOR, at, at.date())
        assert [c.amount for c in result.credits] == [Decimal("100.00"), Decimal("20.00")]
        assert audit_log.outstanding_credits(p0.id) == {p1.id: Decimal("100.00"), p2.id: Decimal("20.00")}

        reversed_credits = allocator.rollback(p0, scheduled[1], ACTOR, at, at.date())

        assert [c.target_payment_id for c in reversed_credits] == [p1.id, p2.id]
        assert p1.credited_amount == Decimal("0.00")
        assert p2.credited_amount == Decimal("0.00")
        assert audit_log.outstanding_credits(p0.id) == {}

    def test_rollback_only_touches_credits_of_its_source(self, ledger, scheduled, audit_log):
        _, (p0, p1, p2) = scheduled
        ledger.mark_paid(p0.id, date(2024, 1, 5), ACTOR, actual_amount_paid="130")
        ledger.mark_paid(p1.id, date(2024, 1, 5), ACTOR, actual_amount_paid="90")
        assert p2.credited_amount == Decimal("20.00")

        ledger.revert(p1.id, ACTOR)

        assert p2.credited_amount == Decimal("0.00")
        assert p1.credited_amount == Decimal("30.00")
