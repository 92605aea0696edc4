"""POST /v1/webhooks/{mercadopago,webpay} - payment gateway notifications"""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from ravehub_gateway.api.dependencies import get_raw_body, get_request_id, get_revalidation_client
from ravehub_gateway.api.security import verify_webhook_signature
from ravehub_gateway.api.v1.schemas import ActionResponse, MercadoPagoNotification, WebpayNotification
from ravehub_gateway.api.v1.transitions import execute_transition
from ravehub_gateway.config import settings
from ravehub_gateway.domain.exceptions import InvalidSignatureError
from ravehub_gateway.domain.models import TransitionCommand, TransitionSource
from ravehub_gateway.domain.transitions import map_mercadopago_status, map_webpay_status
from ravehub_gateway.infrastructure.clients.revalidation import RevalidationClient
from ravehub_gateway.infrastructure.database.session import get_db
from ravehub_gateway.infrastructure.observability.logging import log_signature_failure
from ravehub_gateway.infrastructure.observability.metrics import webhook_signature_failure_counter

logger = logging.getLogger(__name__)

router = APIRouter()

MERCADOPAGO_ACTOR = "mercadopago-webhook"
WEBPAY_ACTOR = "webpay-webhook"


def _read_verified(request: Request, body: bytes, gateway: str, secret: str, schema: type[BaseModel]):
    """Verify the signature on the raw body, then parse it; nothing is parsed before verification"""
    request_id = get_request_id(request)

    try:
        verify_webhook_signature(secret, body, request.headers.get("X-Signature"))
    except InvalidSignatureError as e:
        webhook_signature_failure_counter.labels(gateway=gateway).inc()
        log_signature_failure(request_id, gateway, str(e))
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        return schema.model_validate_json(body)
    except ValidationError as e:
        logger.warning(f"Malformed {gateway} webhook: {e.error_count()} errors", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail="Invalid webhook payload")


@router.post("/webhooks/mercadopago", response_model=ActionResponse)
def mercadopago_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    body: bytes = Depends(get_raw_body),
    db: Session = Depends(get_db),
    revalidation_client: RevalidationClient = Depends(get_revalidation_client),
):
    """
    Apply a MercadoPago payment result to the transaction in external_reference.

    approved -> approved, rejected/cancelled -> rejected, anything else stays
    pending. Approved installment payments settle installment #1 with the
    gateway's approval date.
    """
    payload: MercadoPagoNotification = _read_verified(
        request, body, "mercadopago", settings.mercadopago_webhook_secret, MercadoPagoNotification
    )
    logger.info(
        "MercadoPago webhook received",
        extra={"request_id": get_request_id(request), "payment_id": str(payload.id),
               "status": payload.status, "external_reference": payload.external_reference},
    )

    command = TransitionCommand(
        transaction_id=payload.external_reference,
        target_status=map_mercadopago_status(payload.status),
        actor=MERCADOPAGO_ACTOR,
        source=TransitionSource.MERCADOPAGO,
        gateway_installments=payload.installments,
        payment_date=payload.date_approved or datetime.now(timezone.utc),
        gateway_payment_id=str(payload.id),
    )
    outcome = execute_transition(db, command, get_request_id(request), background_tasks, revalidation_client)

    return ActionResponse(message=f"Transaction {outcome.transaction_id} updated to {outcome.status.value}")


@router.post("/webhooks/webpay", response_model=ActionResponse)
def webpay_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    body: bytes = Depends(get_raw_body),
    db: Session = Depends(get_db),
    revalidation_client: RevalidationClient = Depends(get_revalidation_client),
):
    """
    Apply a Webpay authorization result to the transaction in buyOrder.

    AUTHORIZED -> approved, FAILED/REVERSED -> rejected. The payload carries no
    approval timestamp, so installment #1 is settled with the current time.
    """
    payload: WebpayNotification = _read_verified(
        request, body, "webpay", settings.webpay_webhook_secret, WebpayNotification
    )
    logger.info(
        "Webpay webhook received",
        extra={"request_id": get_request_id(request), "buy_order": payload.buy_order,
               "status": payload.status},
    )

    command = TransitionCommand(
        transaction_id=payload.buy_order,
        target_status=map_webpay_status(payload.status),
        actor=WEBPAY_ACTOR,
        source=TransitionSource.WEBPAY,
        gateway_installments=payload.installments,
        payment_date=datetime.now(timezone.utc),
        gateway_payment_id=payload.authorization_code,
    )
    outcome = execute_transition(db, command, get_request_id(request), background_tasks, revalidation_client)

    return ActionResponse(message=f"Transaction {outcome.transaction_id} updated to {outcome.status.value}")
