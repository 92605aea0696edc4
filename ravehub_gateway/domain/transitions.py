"""Ticket transaction state machine: gateway status mapping and transition rules"""

from typing import Optional

from ravehub_gateway.domain.exceptions import (
    InvalidStateTransitionError,
    MissingPrincipalError,
    TransitionConflictError,
)
from ravehub_gateway.domain.models import (
    PaymentStatus,
    PaymentType,
    TransitionCommand,
    TransitionSource,
)

_MERCADOPAGO_STATUS = {
    "approved": PaymentStatus.APPROVED,
    "rejected": PaymentStatus.REJECTED,
    "cancelled": PaymentStatus.REJECTED,
}

_WEBPAY_STATUS = {
    "AUTHORIZED": PaymentStatus.APPROVED,
    "FAILED": PaymentStatus.REJECTED,
    "REVERSED": PaymentStatus.REJECTED,
}


def map_mercadopago_status(status: Optional[str]) -> PaymentStatus:
    """MercadoPago payment status -> transaction status (in_process, pending etc. stay pending)"""
    return _MERCADOPAGO_STATUS.get(status or "", PaymentStatus.PENDING)


def map_webpay_status(status: Optional[str]) -> PaymentStatus:
    """Webpay authorization status -> transaction status"""
    return _WEBPAY_STATUS.get(status or "", PaymentStatus.PENDING)


def require_actor(actor: Optional[str]) -> str:
    """Every state-changing call must name who made it"""
    if actor is None or not actor.strip():
        raise MissingPrincipalError("An authenticated actor is required for this operation")
    return actor.strip()


def check_transition(command: TransitionCommand, current: PaymentStatus) -> bool:
    """
    Decide whether the command should write.

    Returns:
        True if the transaction must move to command.target_status,
        False if nothing needs to be written (gateway reported a non-final
        status, or redelivered the outcome already recorded).

    Raises:
        InvalidStateTransitionError: admin acting on a non-pending transaction
        TransitionConflictError: gateway reporting the opposite of a recorded outcome
    """
    if command.source == TransitionSource.ADMIN:
        if current != PaymentStatus.PENDING:
            raise InvalidStateTransitionError()
        return True

    if command.target_status == PaymentStatus.PENDING:
        return False

    if current == PaymentStatus.PENDING:
        return True
    if current == command.target_status:
        return False

    raise TransitionConflictError(
        f"Transaction {command.transaction_id} is already {current.value}"
    )


def should_settle_first_installment(
    payment_type: PaymentType,
    command: TransitionCommand,
) -> bool:
    """
    Only installment #1 is ever settled by an approval.

    Admin approvals settle it for any installment transaction; gateway
    approvals only when the gateway reports more than one installment.
    """
    if command.target_status != PaymentStatus.APPROVED:
        return False
    if payment_type != PaymentType.INSTALLMENT:
        return False
    if command.source == TransitionSource.ADMIN:
        return True
    return (command.gateway_installments or 0) > 1
