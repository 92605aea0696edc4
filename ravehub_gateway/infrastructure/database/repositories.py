"""Data access layer for ticket transactions and installments"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from ravehub_gateway.infrastructure.database.models import TicketTransaction, PaymentInstallment
from ravehub_gateway.domain.models import DeliveryStatus, InstallmentItem, InstallmentStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionRepository:
    """Repository for ticket transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(
        self,
        user_id: str,
        event_id: str,
        ticket_items: List[Dict[str, Any]],
        total_amount: Decimal,
        currency: str,
        payment_method: str,
        payment_type: str,
        ticket_delivery_mode: str = "automatic",
        tickets_download_available_at: Optional[datetime] = None,
    ) -> TicketTransaction:
        """Persist a new pending transaction"""
        db_transaction = TicketTransaction(
            user_id=user_id,
            event_id=event_id,
            ticket_items=ticket_items,
            total_amount=total_amount,
            currency=currency,
            payment_method=payment_method,
            payment_type=payment_type,
            payment_status="pending",
            ticket_delivery_mode=ticket_delivery_mode,
            ticket_delivery_status=(
                DeliveryStatus.SCHEDULED.value if tickets_download_available_at else DeliveryStatus.PENDING.value
            ),
            tickets_download_available_at=tickets_download_available_at,
            version=1,
            updated_at=utcnow(),
        )
        self.db.add(db_transaction)
        self.db.flush()  # Get ID without committing
        return db_transaction

    def get_transaction(self, transaction_id: str) -> Optional[TicketTransaction]:
        """Fetch a transaction by id (gateway external reference / buy order)"""
        if not transaction_id:
            return None
        return self.db.get(TicketTransaction, transaction_id)

    def list_transactions(self, status: Optional[str] = None, limit: int = 50) -> List[TicketTransaction]:
        """Fetch recent transactions, optionally filtered by payment status"""
        stmt = select(TicketTransaction)
        if status:
            stmt = stmt.where(TicketTransaction.payment_status == status)
        stmt = stmt.order_by(TicketTransaction.created_at.desc()).limit(limit)
        return list(self.db.scalars(stmt))

    def compare_and_set_status(
        self,
        transaction_id: str,
        expected_status: str,
        expected_version: int,
        new_status: str,
        **fields: Any,
    ) -> bool:
        """
        Conditionally move a transaction to new_status.

        The UPDATE only matches while the row still has the status and version
        the caller read, so two writers racing on the same transaction cannot
        both succeed.

        Returns:
            True if this call won the write
        """
        stmt = (
            update(TicketTransaction)
            .where(TicketTransaction.id == transaction_id)
            .where(TicketTransaction.payment_status == expected_status)
            .where(TicketTransaction.version == expected_version)
            .values(
                payment_status=new_status,
                version=TicketTransaction.version + 1,
                updated_at=utcnow(),
                **fields,
            )
            # Loaded instances are refreshed on commit
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def mark_delivered(self, transaction: TicketTransaction, file_urls: List[str]) -> TicketTransaction:
        """Record manually uploaded ticket files and mark delivery complete"""
        now = utcnow()
        transaction.ticket_files = list(file_urls)
        transaction.ticket_delivery_status = DeliveryStatus.DELIVERED.value
        transaction.delivered_at = now
        transaction.updated_at = now
        self.db.flush()
        return transaction

    def mark_available(self, transaction: TicketTransaction) -> TicketTransaction:
        """Open an automatic-delivery transaction for download"""
        transaction.ticket_delivery_status = DeliveryStatus.AVAILABLE.value
        transaction.updated_at = utcnow()
        self.db.flush()
        return transaction


class InstallmentRepository:
    """Repository for payment installments"""

    def __init__(self, db: Session):
        self.db = db

    def create_schedule(
        self,
        transaction_id: str,
        currency: str,
        installments: List[InstallmentItem],
    ) -> List[PaymentInstallment]:
        """Create one pending row per scheduled installment"""
        rows = []
        for inst in installments:
            db_installment = PaymentInstallment(
                transaction_id=transaction_id,
                installment_number=inst.installment_number,
                amount=inst.amount,
                currency=currency,
                status=InstallmentStatus.PENDING.value,
                due_date=inst.due_date,
                admin_approved=False,
            )
            self.db.add(db_installment)
            rows.append(db_installment)
        self.db.flush()
        return rows

    def get_installment(self, transaction_id: str, installment_number: int) -> Optional[PaymentInstallment]:
        """Fetch one installment by transaction and number"""
        stmt = select(PaymentInstallment).where(
            PaymentInstallment.transaction_id == transaction_id,
            PaymentInstallment.installment_number == installment_number,
        )
        return self.db.scalars(stmt).first()

    def list_for_transaction(self, transaction_id: str) -> List[PaymentInstallment]:
        """Fetch the whole schedule ordered by installment number"""
        stmt = (
            select(PaymentInstallment)
            .where(PaymentInstallment.transaction_id == transaction_id)
            .order_by(PaymentInstallment.installment_number)
        )
        return list(self.db.scalars(stmt))

    def settle(
        self,
        installment: PaymentInstallment,
        approved_by: str,
        payment_date: Optional[datetime] = None,
    ) -> PaymentInstallment:
        """Mark an installment paid and approved by the given actor"""
        now = utcnow()
        installment.status = InstallmentStatus.PAID.value
        installment.admin_approved = True
        installment.approved_by = approved_by
        installment.approved_at = now
        installment.payment_date = payment_date or now
        self.db.flush()
        return installment
