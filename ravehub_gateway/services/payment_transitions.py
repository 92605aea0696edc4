"""Apply payment state transitions from admin review and gateway webhooks"""

import logging
import time
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ravehub_gateway.config import settings
from ravehub_gateway.domain.exceptions import TransactionNotFoundError, TransitionConflictError
from ravehub_gateway.domain.models import (
    PaymentStatus,
    PaymentType,
    TransitionCommand,
    TransitionOutcome,
    TransitionSource,
)
from ravehub_gateway.domain.transitions import (
    check_transition,
    require_actor,
    should_settle_first_installment,
)
from ravehub_gateway.infrastructure.database.repositories import (
    InstallmentRepository,
    TransactionRepository,
    utcnow,
)

logger = logging.getLogger(__name__)


def _apply_once(db: Session, command: TransitionCommand) -> TransitionOutcome:
    transactions = TransactionRepository(db)
    transaction = transactions.get_transaction(command.transaction_id)
    if transaction is None:
        raise TransactionNotFoundError(command.transaction_id)

    current = PaymentStatus(transaction.payment_status)
    expected_version = transaction.version
    event_id = transaction.event_id

    if not check_transition(command, current):
        return TransitionOutcome(
            transaction_id=transaction.id,
            event_id=event_id,
            previous_status=current,
            status=current,
            changed=False,
        )

    fields = {}
    if command.source == TransitionSource.ADMIN:
        fields["reviewed_by"] = command.actor
        fields["reviewed_at"] = utcnow()
        fields["admin_notes"] = command.admin_notes or transaction.admin_notes
    if command.gateway_payment_id:
        fields["gateway_payment_id"] = command.gateway_payment_id

    won = transactions.compare_and_set_status(
        transaction.id,
        expected_status=current.value,
        expected_version=expected_version,
        new_status=command.target_status.value,
        **fields,
    )
    if not won:
        raise TransitionConflictError(
            f"Transaction {command.transaction_id} was modified concurrently"
        )

    settled = False
    if should_settle_first_installment(PaymentType(transaction.payment_type), command):
        installments = InstallmentRepository(db)
        first = installments.get_installment(transaction.id, 1)
        if first is None:
            logger.warning(
                "Installment #1 missing for approved transaction",
                extra={"transaction_id": transaction.id},
            )
        else:
            installments.settle(first, approved_by=command.actor, payment_date=command.payment_date)
            settled = True

    # Transaction status and installment #1 become visible together
    db.commit()

    return TransitionOutcome(
        transaction_id=transaction.id,
        event_id=event_id,
        previous_status=current,
        status=command.target_status,
        changed=True,
        installment_settled=settled,
    )


def apply_transition(db: Session, command: TransitionCommand) -> TransitionOutcome:
    """
    Move a ticket transaction out of pending.

    Flow:
    1. Load the transaction (TransactionNotFoundError if missing)
    2. Check the transition rules for the command's source
    3. Compare-and-set the status on (status, version)
    4. Settle installment #1 when an installment purchase is approved
    5. Commit both writes at once

    Database contention (OperationalError) rolls back and retries with
    exponential backoff; domain errors roll back and propagate.

    Raises:
        MissingPrincipalError: command has no actor
        TransactionNotFoundError, InvalidStateTransitionError, TransitionConflictError
    """
    command.actor = require_actor(command.actor)

    attempt = 0
    while True:
        try:
            return _apply_once(db, command)
        except OperationalError:
            db.rollback()
            attempt += 1
            if attempt >= settings.transition_max_retries:
                raise
            backoff = settings.transition_backoff_base * (2 ** (attempt - 1))
            logger.warning(
                "Database contention applying transition, retrying",
                extra={"transaction_id": command.transaction_id, "attempt": attempt},
            )
            time.sleep(backoff)
        except Exception:
            db.rollback()
            raise
