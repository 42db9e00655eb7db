from uuid import UUID

from fastapi import HTTPException, status


class LeaseDeskError(Exception):
    """Base for every error the ledger raises on purpose.

    status_code and code are what the API layer renders; message is safe to show a user.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    code = "lease_desk_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidLeaseError(LeaseDeskError):
    code = "invalid_lease"


class InvalidAmountError(LeaseDeskError):
    code = "invalid_amount"


class PaymentNotFoundError(LeaseDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "payment_not_found"

    def __init__(self, payment_id: UUID):
        super().__init__(f"Payment {payment_id} not found")
        self.payment_id = payment_id


class LeaseNotFoundError(LeaseDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "lease_not_found"

    def __init__(self, lease_id: UUID):
        super().__init__(f"Lease {lease_id} not found")
        self.lease_id = lease_id


class CustomerNotFoundError(LeaseDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "customer_not_found"

    def __init__(self, customer_id: UUID):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class AlreadyPaidError(LeaseDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_paid"

    def __init__(self, payment_id: UUID):
        super().__init__(f"Payment {payment_id} is already marked as paid")
        self.payment_id = payment_id


class AllocationOverflowError(LeaseDeskError):
    """Overpayment is larger than every later installment can absorb.

    Only raised when unallocated excess is disabled in settings; otherwise the
    excess is returned to the caller as a customer credit balance.
    """

    status_code = status.HTTP_409_CONFLICT
    code = "allocation_overflow"

    def __init__(self, payment_id: UUID, unallocated_excess):
        super().__init__(
            f"Overpayment on payment {payment_id} leaves {unallocated_excess} that no later installment can absorb"
        )
        self.payment_id = payment_id
        self.unallocated_excess = unallocated_excess


class ConcurrentModificationError(LeaseDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "concurrent_modification"

    def __init__(self, lease_id: UUID | None, message: str | None = None):
        super().__init__(message or f"Lease {lease_id} was modified concurrently; retry the operation")
        self.lease_id = lease_id


class AuthenticationRequired(LeaseDeskError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_required"


class ImmutableRecordError(LeaseDeskError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "immutable_record"


class ConservationError(LeaseDeskError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "conservation_violation"


class AppException:
    """Class-based exception handlers for common HTTP status codes."""

    @staticmethod
    def raise_400(message: str = "Bad Request"):
        """Raise a 400 Bad Request exception."""
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

