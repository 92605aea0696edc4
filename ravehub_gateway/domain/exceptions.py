"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class TransactionNotFoundError(DomainException):
    """No ticket transaction exists for the given id / external reference"""

    def __init__(self, transaction_id: str):
        super().__init__("Transaction not found")
        self.transaction_id = transaction_id


class InvalidStateTransitionError(DomainException):
    """Admin action on a transaction that already left the pending state"""

    def __init__(self, message: str = "Transaction is not pending approval"):
        super().__init__(message)


class TransitionConflictError(DomainException):
    """Another writer changed the transaction first"""

    pass


class MissingPrincipalError(DomainException):
    """State-changing call without an identifiable actor"""

    pass


class InvalidSignatureError(DomainException):
    """Webhook signature missing or does not match the payload"""

    pass


class InvalidPurchaseError(DomainException):
    """Purchase request cannot be turned into a transaction"""

    pass


class DeliveryNotAllowedError(DomainException):
    """Ticket delivery precondition not met"""

    pass


class RevalidationError(DomainException):
    """Storefront revalidation endpoint returned an error or is unavailable"""

    pass
