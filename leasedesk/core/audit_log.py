"""Append-only reconciliation audit log."""
import logging
import uuid
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from leasedesk.core.utils import ZERO, to_money
from leasedesk.models.audit_entry import AuditEntry
from leasedesk.models.enums import AuditEntryKind, PaymentStatus

logger = logging.getLogger(__name__)


class ReconciliationAuditLog:
    """
    Every status transition and every credit move, in the order it happened.

    Entries are only ever appended; nothing here edits or removes one. Besides
    answering "what happened and why", the log is what revert reads to find the
    credits a payment granted (see outstanding_credits).

    The log can be seeded with entries already persisted for a lease; entries
    appended afterwards are returned by pending_entries() until mark_persisted().
    """

    def __init__(self, entries: Iterable[AuditEntry] = ()):
        self._entries: list[AuditEntry] = []
        self._next_position: dict[UUID, int] = defaultdict(int)
        self._pending: list[AuditEntry] = []
        for entry in sorted(entries, key=lambda e: (e.timestamp, e.position)):
            self._entries.append(entry)
            self._next_position[entry.lease_id] = max(self._next_position[entry.lease_id], entry.position + 1)

    def __len__(self) -> int:
        return len(self._entries)

    def _append(self, **fields) -> AuditEntry:
        lease_id = fields["lease_id"]
        entry = AuditEntry(id=uuid.uuid4(), position=self._next_position[lease_id], **fields)
        self._next_position[lease_id] += 1
        self._entries.append(entry)
        self._pending.append(entry)
        return entry

    def record_transition(
        self,
        payment,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        actor: str,
        at: datetime,
        notes: str | None = None,
        amount: Decimal | None = None,
    ) -> AuditEntry:
        """amount defaults to what the payment records as actually paid."""
        entry = self._append(
            lease_id=payment.lease_id,
            payment_id=payment.id,
            kind=AuditEntryKind.status_change.value,
            from_status=PaymentStatus(from_status).value,
            to_status=PaymentStatus(to_status).value,
            amount=amount if amount is not None else payment.actual_amount_paid,
            source_payment_id=None,
            actor=actor,
            timestamp=at,
            notes=notes,
        )
        logger.info(
            "Audit: payment_id=%s %s -> %s actor=%s", payment.id, entry.from_status, entry.to_status, actor
        )
        return entry

    def record_credit(
        self,
        target,
        source,
        amount: Decimal,
        status: PaymentStatus,
        actor: str,
        at: datetime,
    ) -> AuditEntry:
        return self._append(
            lease_id=target.lease_id,
            payment_id=target.id,
            kind=AuditEntryKind.credit_granted.value,
            from_status=PaymentStatus(status).value,
            to_status=PaymentStatus(status).value,
            amount=to_money(amount),
            source_payment_id=source.id,
            actor=actor,
            timestamp=at,
            notes=f"Overpayment credit from installment #{source.sequence_index + 1}",
        )

    def record_credit_reversal(
        self,
        target,
        source,
        amount: Decimal,
        from_status: PaymentStatus,
        to_status: PaymentStatus,
        actor: str,
        at: datetime,
    ) -> AuditEntry:
        return self._append(
            lease_id=target.lease_id,
            payment_id=target.id,
            kind=AuditEntryKind.credit_reversed.value,
            from_status=PaymentStatus(from_status).value,
            to_status=PaymentStatus(to_status).value,
            amount=to_money(amount),
            source_payment_id=source.id,
            actor=actor,
            timestamp=at,
            notes=f"Credit withdrawn: installment #{source.sequence_index + 1} reverted",
        )

    # --- read-only queries ---

    def entries(self) -> list[AuditEntry]:
        return sorted(self._entries, key=lambda e: (e.timestamp, e.position))

    def entries_for_payment(self, payment_id: UUID) -> list[AuditEntry]:
        """Entries recorded on this payment (its own transitions plus credits moved onto or off it)."""
        return [e for e in self.entries() if e.payment_id == payment_id]

    def entries_for_lease(self, lease_id: UUID) -> list[AuditEntry]:
        return sorted((e for e in self._entries if e.lease_id == lease_id), key=lambda e: e.position)

    def status_changes_for(self, payment_id: UUID) -> list[AuditEntry]:
        return [e for e in self.entries_for_payment(payment_id) if e.kind == AuditEntryKind.status_change.value]

    def outstanding_credits(self, source_payment_id: UUID) -> dict[UUID, Decimal]:
        """Credit the source payment currently has on each target: granted minus already reversed."""
        balance: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for e in self._entries:
            if e.source_payment_id != source_payment_id:
                continue
            if e.kind == AuditEntryKind.credit_granted.value:
                balance[e.payment_id] += to_money(e.amount)
            elif e.kind == AuditEntryKind.credit_reversed.value:
                balance[e.payment_id] -= to_money(e.amount)
        return {target: amount for target, amount in balance.items() if amount > ZERO}

    def outstanding_credit_by_target(self, lease_id: UUID) -> dict[UUID, Decimal]:
        """Net credit each payment of the lease has received, across all sources."""
        balance: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for e in self._entries:
            if e.lease_id != lease_id:
                continue
            if e.kind == AuditEntryKind.credit_granted.value:
                balance[e.payment_id] += to_money(e.amount)
            elif e.kind == AuditEntryKind.credit_reversed.value:
                balance[e.payment_id] -= to_money(e.amount)
        return dict(balance)

    # --- persistence hand-off ---

    def pending_entries(self) -> list[AuditEntry]:
        return list(self._pending)

    def mark_persisted(self) -> None:
        self._pending.clear()
