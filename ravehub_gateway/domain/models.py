"""Domain models - pure Python dataclasses and enums for ticket payments"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class PaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentType(str, Enum):
    FULL = "full"
    INSTALLMENT = "installment"


class PaymentMethod(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class DeliveryMode(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL_UPLOAD = "manualUpload"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    AVAILABLE = "available"
    DELIVERED = "delivered"


class TransitionSource(str, Enum):
    """Who is driving a status change"""

    ADMIN = "admin"
    MERCADOPAGO = "mercadopago"
    WEBPAY = "webpay"


class PlanError(str, Enum):
    INVALID_TOTAL_AMOUNT = "invalid_total_amount"
    INVALID_RESERVATION_AMOUNT = "invalid_reservation_amount"
    RESERVATION_EXCEEDS_TOTAL = "reservation_exceeds_total"
    INVALID_INSTALLMENTS_COUNT = "invalid_installments_count"


@dataclass
class InstallmentItem:
    """Single scheduled payment of an installment plan"""

    installment_number: int
    amount: Decimal
    due_date: date


@dataclass
class InstallmentPlanResult:
    """Outcome of the installment calculator; failures carry an error instead of raising"""

    success: bool
    total_amount: Optional[Decimal] = None
    reservation_amount: Optional[Decimal] = None
    remaining_amount: Optional[Decimal] = None
    monthly_amount: Optional[Decimal] = None  # display estimate
    installments: List[InstallmentItem] = field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[PlanError] = None


@dataclass
class TransitionCommand:
    """Request to move a ticket transaction out of pending"""

    transaction_id: str
    target_status: PaymentStatus
    actor: str
    source: TransitionSource
    admin_notes: Optional[str] = None
    gateway_installments: Optional[int] = None
    payment_date: Optional[datetime] = None
    gateway_payment_id: Optional[str] = None


@dataclass
class TransitionOutcome:
    """Result of applying a TransitionCommand"""

    transaction_id: str
    event_id: str
    previous_status: PaymentStatus
    status: PaymentStatus
    changed: bool
    installment_settled: bool = False
