"""Shared request-boundary handling for admin reviews and gateway webhooks"""

import logging
from fastapi import BackgroundTasks, HTTPException
from sqlalchemy.orm import Session

from ravehub_gateway.domain.exceptions import (
    InvalidStateTransitionError,
    MissingPrincipalError,
    TransactionNotFoundError,
    TransitionConflictError,
)
from ravehub_gateway.domain.models import PaymentStatus, TransitionCommand, TransitionOutcome
from ravehub_gateway.infrastructure.clients.revalidation import RevalidationClient
from ravehub_gateway.infrastructure.observability.logging import log_transition
from ravehub_gateway.infrastructure.observability.metrics import record_transition
from ravehub_gateway.services.payment_transitions import apply_transition

logger = logging.getLogger(__name__)


def execute_transition(
    db: Session,
    command: TransitionCommand,
    request_id: str,
    background_tasks: BackgroundTasks,
    revalidation_client: RevalidationClient,
) -> TransitionOutcome:
    """
    Apply a transition and translate domain failures into HTTP errors.

    On a fresh approval, event capacity revalidation is scheduled to run
    after the response is sent.
    """
    source = command.source.value
    log_extra = {"request_id": request_id, "transaction_id": command.transaction_id, "source": source}

    try:
        outcome = apply_transition(db, command)

    except MissingPrincipalError as e:
        record_transition(source, "invalid")
        raise HTTPException(status_code=401, detail=str(e))

    except TransactionNotFoundError as e:
        record_transition(source, "invalid")
        logger.warning("Transaction not found", extra=log_extra)
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidStateTransitionError as e:
        record_transition(source, "invalid")
        logger.info(f"Rejected transition: {e}", extra=log_extra)
        raise HTTPException(status_code=400, detail=str(e))

    except TransitionConflictError as e:
        record_transition(source, "conflict")
        logger.warning(f"Transition conflict: {e}", extra=log_extra)
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        logger.error(f"Unexpected error applying transition: {e}", extra=log_extra)
        raise HTTPException(status_code=500, detail="Internal server error")

    record_transition(
        source,
        outcome.status.value if outcome.changed else "pending",
        installment_settled=outcome.installment_settled,
    )
    log_transition(
        request_id,
        outcome.transaction_id,
        source,
        outcome.previous_status.value,
        outcome.status.value,
        command.actor,
        outcome.changed,
        outcome.installment_settled,
    )

    if outcome.changed and outcome.status == PaymentStatus.APPROVED and outcome.event_id:
        background_tasks.add_task(revalidation_client.revalidate_in_background, outcome.event_id)

    return outcome
