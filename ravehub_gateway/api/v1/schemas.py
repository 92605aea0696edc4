"""Pydantic schemas for API request/response validation (camelCase on the wire)"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from ravehub_gateway.domain.installments import MAX_AMOUNT, MAX_INSTALLMENTS
from ravehub_gateway.domain.models import DeliveryMode, PaymentMethod, PaymentType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActionResponse(CamelModel):
    """Response for admin actions and webhooks"""

    success: bool = True
    message: str


# Installment plans

class PlanRequest(CamelModel):
    """Request body for POST /v1/installments/plan"""

    total_amount: Decimal = Field(..., le=MAX_AMOUNT)
    reservation_amount: Decimal = Field(Decimal("0"), le=MAX_AMOUNT)
    installments_count: int = Field(..., le=MAX_INSTALLMENTS)
    start_date: date


class InstallmentSchema(CamelModel):
    """Single installment in a payment schedule"""

    installment_number: int
    amount: float
    due_date: date
    status: str = "pending"
    admin_approved: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    payment_date: Optional[datetime] = None


class PlanResponse(CamelModel):
    """Response for POST /v1/installments/plan"""

    success: bool = True
    total_amount: float
    reservation_amount: float
    remaining_amount: float
    monthly_amount: float
    installments: List[InstallmentSchema]


# Purchases

class TicketItemSchema(CamelModel):
    zone_id: str = Field(..., min_length=1)
    zone_name: str
    phase_id: Optional[str] = None
    phase_name: Optional[str] = None
    quantity: int = Field(..., gt=0)
    price_per_ticket: Decimal = Field(..., ge=0, le=MAX_AMOUNT)


class PurchaseRequest(CamelModel):
    """Request body for POST /v1/tickets/purchase"""

    event_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    tickets: List[TicketItemSchema] = Field(..., min_length=1)
    payment_method: PaymentMethod
    payment_type: PaymentType = PaymentType.FULL
    installments: int = Field(1, ge=1, le=MAX_INSTALLMENTS)
    reservation_amount: Decimal = Field(Decimal("0"), le=MAX_AMOUNT)
    total_amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)
    currency: str = Field(..., min_length=3, max_length=8)
    ticket_delivery_mode: DeliveryMode = DeliveryMode.AUTOMATIC
    tickets_download_available_at: Optional[datetime] = None
    first_due_date: Optional[date] = None


class PurchaseResponse(CamelModel):
    """Response for POST /v1/tickets/purchase"""

    success: bool = True
    transaction_id: str
    message: str
    payment_url: Optional[str] = None
    next_steps: List[str] = []
    installments: List[InstallmentSchema] = []


class TransactionResponse(CamelModel):
    """Ticket transaction with its installment schedule"""

    id: str
    user_id: str
    event_id: str
    ticket_items: list
    total_amount: float
    currency: str
    payment_method: str
    payment_type: str
    payment_status: str
    admin_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    ticket_delivery_mode: str
    ticket_delivery_status: str
    ticket_files: List[str] = []
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    installments: List[InstallmentSchema] = []


class TransactionListResponse(CamelModel):
    """Response for GET /v1/admin/transactions"""

    transactions: List[TransactionResponse]


# Admin review

class ReviewRequest(CamelModel):
    """Body for POST/PUT /v1/tickets/approve-offline"""

    transaction_id: Optional[str] = None
    admin_notes: Optional[str] = None


class DownloadResponse(CamelModel):
    """Response for POST /v1/tickets/{transaction_id}/download"""

    success: bool = True
    transaction_id: str
    ticket_delivery_mode: str
    ticket_delivery_status: str
    tickets_download_available_at: Optional[datetime] = None
    ticket_files: List[str] = []


class ManualDeliveryRequest(CamelModel):
    """Body for POST /v1/tickets/{transaction_id}/manual-delivery"""

    file_urls: List[HttpUrl] = Field(..., min_length=1)


# Gateway webhooks (gateway field names, not camelCase)

class MercadoPagoNotification(BaseModel):
    """MercadoPago payment notification"""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    status: str
    status_detail: Optional[str] = None
    payment_method_id: Optional[str] = None
    transaction_amount: Optional[Decimal] = None
    installments: Optional[int] = None
    external_reference: str = Field(..., min_length=1)
    date_created: Optional[datetime] = None
    date_approved: Optional[datetime] = None


class WebpayNotification(BaseModel):
    """Webpay transaction result"""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    buy_order: str = Field(..., min_length=1)
    session_id: Optional[str] = None
    amount: Optional[Decimal] = None
    status: str
    card_number: Optional[str] = None
    authorization_code: Optional[str] = None
    payment_type: Optional[str] = None
    installments: Optional[int] = None
    transaction_date: Optional[datetime] = None
    vci: Optional[str] = None
