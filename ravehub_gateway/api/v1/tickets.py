"""Ticket purchase, transaction lookup and manual ticket delivery"""

import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ravehub_gateway.api.dependencies import get_admin_principal, get_request_id
from ravehub_gateway.api.v1.schemas import (
    ActionResponse,
    DownloadResponse,
    InstallmentSchema,
    ManualDeliveryRequest,
    PurchaseRequest,
    PurchaseResponse,
    TransactionResponse,
)
from ravehub_gateway.domain.delivery import ensure_delivery_allowed
from ravehub_gateway.domain.exceptions import DeliveryNotAllowedError, InvalidPurchaseError
from ravehub_gateway.domain.installments import calculate_installment_plan
from ravehub_gateway.domain.models import DeliveryMode, DeliveryStatus, PaymentMethod, PaymentType
from ravehub_gateway.infrastructure.database.models import PaymentInstallment, TicketTransaction
from ravehub_gateway.infrastructure.database.repositories import InstallmentRepository, TransactionRepository
from ravehub_gateway.infrastructure.database.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

OFFLINE_NEXT_STEPS = [
    "Upload payment proof in your profile",
    "Wait for admin approval",
    "Download tickets once approved",
]


def to_installment_schema(inst: PaymentInstallment) -> InstallmentSchema:
    return InstallmentSchema(
        installment_number=inst.installment_number,
        amount=float(inst.amount),
        due_date=inst.due_date,
        status=inst.status,
        admin_approved=inst.admin_approved,
        approved_by=inst.approved_by,
        approved_at=inst.approved_at,
        payment_date=inst.payment_date,
    )


def to_transaction_response(transaction: TicketTransaction, include_installments: bool = True) -> TransactionResponse:
    return TransactionResponse(
        id=transaction.id,
        user_id=transaction.user_id,
        event_id=transaction.event_id,
        ticket_items=transaction.ticket_items or [],
        total_amount=float(transaction.total_amount),
        currency=transaction.currency,
        payment_method=transaction.payment_method,
        payment_type=transaction.payment_type,
        payment_status=transaction.payment_status,
        admin_notes=transaction.admin_notes,
        reviewed_by=transaction.reviewed_by,
        reviewed_at=transaction.reviewed_at,
        ticket_delivery_mode=transaction.ticket_delivery_mode,
        ticket_delivery_status=transaction.ticket_delivery_status,
        ticket_files=transaction.ticket_files or [],
        delivered_at=transaction.delivered_at,
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
        installments=[to_installment_schema(i) for i in transaction.installments] if include_installments else [],
    )


def _build_schedule(body: PurchaseRequest):
    """Installment rows for the purchase, or [] when it is paid in one go"""
    if body.payment_type != PaymentType.INSTALLMENT or body.installments <= 1:
        return []

    plan = calculate_installment_plan(
        body.total_amount,
        body.reservation_amount,
        body.installments,
        body.first_due_date or date.today(),
    )
    if not plan.success:
        raise InvalidPurchaseError(plan.error)
    return plan.installments


@router.post("/tickets/purchase", response_model=PurchaseResponse)
def purchase_tickets(body: PurchaseRequest, request: Request, db: Session = Depends(get_db)):
    """
    Create a pending ticket transaction.

    Flow:
    1. Build the installment schedule for installment purchases
    2. Persist the transaction and its installment rows
    3. Online payments continue at the gateway; offline ones wait for review
    """
    request_id = get_request_id(request)

    try:
        schedule = _build_schedule(body)

        transaction_repo = TransactionRepository(db)
        transaction = transaction_repo.create_transaction(
            user_id=body.user_id,
            event_id=body.event_id,
            ticket_items=[item.model_dump(mode="json", by_alias=True) for item in body.tickets],
            total_amount=body.total_amount,
            currency=body.currency,
            payment_method=body.payment_method.value,
            payment_type=body.payment_type.value,
            ticket_delivery_mode=body.ticket_delivery_mode.value,
            tickets_download_available_at=body.tickets_download_available_at,
        )
        rows = InstallmentRepository(db).create_schedule(transaction.id, body.currency, schedule)
        db.commit()

    except InvalidPurchaseError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Error processing ticket purchase: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(
        "Ticket transaction created",
        extra={"request_id": request_id, "transaction_id": transaction.id,
               "payment_type": body.payment_type.value, "installments": len(rows)},
    )

    installments = [to_installment_schema(r) for r in rows]
    if body.payment_method == PaymentMethod.ONLINE:
        return PurchaseResponse(
            transaction_id=transaction.id,
            message="Redirecting to payment gateway",
            payment_url=f"/payment/{transaction.id}",
            installments=installments,
        )

    return PurchaseResponse(
        transaction_id=transaction.id,
        message="Transaction created successfully. Please upload payment proof.",
        next_steps=OFFLINE_NEXT_STEPS,
        installments=installments,
    )


@router.get("/tickets/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    """Retrieve a ticket transaction with its installment schedule"""
    transaction = TransactionRepository(db).get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return to_transaction_response(transaction)


@router.post("/tickets/{transaction_id}/manual-delivery", response_model=ActionResponse)
def deliver_manual_tickets(
    transaction_id: str,
    body: ManualDeliveryRequest,
    request: Request,
    admin: str = Depends(get_admin_principal),
    db: Session = Depends(get_db),
):
    """Attach already-stored ticket files to an approved manual-delivery transaction"""
    transaction_repo = TransactionRepository(db)
    transaction = transaction_repo.get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    try:
        ensure_delivery_allowed(
            transaction.payment_status,
            transaction.ticket_delivery_mode,
            required_mode=DeliveryMode.MANUAL_UPLOAD,
        )
    except DeliveryNotAllowedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    transaction_repo.mark_delivered(transaction, [str(url) for url in body.file_urls])
    db.commit()

    logger.info(
        "Tickets delivered manually",
        extra={"request_id": get_request_id(request), "transaction_id": transaction_id,
               "files": len(body.file_urls), "actor": admin},
    )
    return ActionResponse(message="Tickets uploaded successfully")


@router.post("/tickets/{transaction_id}/download", response_model=DownloadResponse)
def request_ticket_download(transaction_id: str, request: Request, db: Session = Depends(get_db)):
    """
    Check that a buyer may download their tickets and open the download.

    The payment must be approved and the event's download date reached.
    Automatic-delivery transactions are marked available; manual-upload ones
    are only downloadable once an admin has attached the files.
    """
    transaction_repo = TransactionRepository(db)
    transaction = transaction_repo.get_transaction(transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")

    try:
        ensure_delivery_allowed(
            transaction.payment_status,
            transaction.ticket_delivery_mode,
            download_available_at=transaction.tickets_download_available_at,
        )
    except DeliveryNotAllowedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if transaction.ticket_delivery_mode == DeliveryMode.MANUAL_UPLOAD.value:
        if transaction.ticket_delivery_status != DeliveryStatus.DELIVERED.value:
            raise HTTPException(status_code=400, detail="Tickets have not been uploaded yet")
    elif transaction.ticket_delivery_status != DeliveryStatus.AVAILABLE.value:
        transaction_repo.mark_available(transaction)
        db.commit()
        logger.info(
            "Tickets opened for download",
            extra={"request_id": get_request_id(request), "transaction_id": transaction_id},
        )

    return DownloadResponse(
        transaction_id=transaction.id,
        ticket_delivery_mode=transaction.ticket_delivery_mode,
        ticket_delivery_status=transaction.ticket_delivery_status,
        tickets_download_available_at=transaction.tickets_download_available_at,
        ticket_files=transaction.ticket_files or [],
    )
