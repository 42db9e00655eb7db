from enum import Enum


class PaymentStatus(str, Enum):
    """Live status of an installment. Derived on every read, never stored."""
    pending = "pending"
    overdue = "overdue"
    paid = "paid"


class AuditEntryKind(str, Enum):
    status_change = "status_change"
    credit_granted = "credit_granted"
    credit_reversed = "credit_reversed"
