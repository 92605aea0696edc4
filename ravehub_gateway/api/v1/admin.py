"""POST/PUT /v1/tickets/approve-offline - manual review of offline payments"""

from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ravehub_gateway.api.dependencies import get_admin_principal, get_request_id, get_revalidation_client
from ravehub_gateway.api.v1.schemas import (
    ActionResponse,
    ReviewRequest,
    TransactionListResponse,
)
from ravehub_gateway.api.v1.tickets import to_transaction_response
from ravehub_gateway.api.v1.transitions import execute_transition
from ravehub_gateway.domain.models import PaymentStatus, TransitionCommand, TransitionSource
from ravehub_gateway.infrastructure.clients.revalidation import RevalidationClient
from ravehub_gateway.infrastructure.database.repositories import TransactionRepository
from ravehub_gateway.infrastructure.database.session import get_db

router = APIRouter()


def _review(
    body: ReviewRequest,
    target: PaymentStatus,
    admin: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session,
    revalidation_client: RevalidationClient,
) -> None:
    if not body.transaction_id:
        raise HTTPException(status_code=400, detail="Transaction ID is required")

    command = TransitionCommand(
        transaction_id=body.transaction_id,
        target_status=target,
        actor=admin,
        source=TransitionSource.ADMIN,
        admin_notes=body.admin_notes,
    )
    execute_transition(db, command, get_request_id(request), background_tasks, revalidation_client)


@router.post("/tickets/approve-offline", response_model=ActionResponse)
def approve_offline_payment(
    body: ReviewRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: str = Depends(get_admin_principal),
    db: Session = Depends(get_db),
    revalidation_client: RevalidationClient = Depends(get_revalidation_client),
):
    """
    Approve a pending offline payment.

    Installment purchases also get installment #1 marked paid, approved by
    the reviewing admin.
    """
    _review(body, PaymentStatus.APPROVED, admin, request, background_tasks, db, revalidation_client)
    return ActionResponse(message="Transaction approved successfully")


@router.put("/tickets/approve-offline", response_model=ActionResponse)
def reject_offline_payment(
    body: ReviewRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: str = Depends(get_admin_principal),
    db: Session = Depends(get_db),
    revalidation_client: RevalidationClient = Depends(get_revalidation_client),
):
    """Reject a pending offline payment; installments are left untouched"""
    _review(body, PaymentStatus.REJECTED, admin, request, background_tasks, db, revalidation_client)
    return ActionResponse(message="Transaction rejected")


@router.get("/admin/transactions", response_model=TransactionListResponse)
def list_transactions(
    status: Optional[PaymentStatus] = Query(None, description="Filter by payment status"),
    limit: int = Query(50, ge=1, le=200),
    admin: str = Depends(get_admin_principal),
    db: Session = Depends(get_db),
):
    """Back-office review queue, newest first"""
    transactions = TransactionRepository(db).list_transactions(
        status=status.value if status else None,
        limit=limit,
    )
    return TransactionListResponse(
        transactions=[to_transaction_response(t, include_installments=False) for t in transactions]
    )
