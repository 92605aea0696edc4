"""SQLAlchemy ORM models for ticket transactions and their installments"""

import uuid
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class TicketTransaction(Base):
    """Buyer's ticket purchase; id doubles as the gateway external reference / buy order"""

    __tablename__ = "ticket_transaction"

    id = Column(String(64), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    event_id = Column(Text, nullable=False, index=True)
    ticket_items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(8), nullable=False)
    payment_method = Column(Text, nullable=False)
    payment_type = Column(Text, nullable=False, default="full")
    payment_status = Column(Text, nullable=False, default="pending", index=True)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    gateway_payment_id = Column(Text, nullable=True)
    ticket_delivery_mode = Column(Text, nullable=False, default="automatic")
    ticket_delivery_status = Column(Text, nullable=False, default="pending")
    tickets_download_available_at = Column(DateTime(timezone=True), nullable=True)
    ticket_files = Column(JSON, nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    # Bumped on every status write; guards compare-and-set transitions
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    installments = relationship(
        "PaymentInstallment",
        back_populates="transaction",
        order_by="PaymentInstallment.installment_number",
    )


class PaymentInstallment(Base):
    """One scheduled payment of an installment transaction"""

    __tablename__ = "payment_installment"
    __table_args__ = (UniqueConstraint("transaction_id", "installment_number"),)

    id = Column(String(64), primary_key=True, default=_new_id)
    transaction_id = Column(String(64), ForeignKey("ticket_transaction.id"), nullable=False, index=True)
    installment_number = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(8), nullable=False)
    status = Column(Text, nullable=False, default="pending")
    due_date = Column(Date, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    admin_approved = Column(Boolean, nullable=False, default=False)
    approved_by = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    transaction = relationship("TicketTransaction", back_populates="installments")
