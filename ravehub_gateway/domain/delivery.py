"""Ticket delivery gate - checks run before tickets are generated or handed over"""

from datetime import datetime, timezone
from typing import Optional

from ravehub_gateway.domain.exceptions import DeliveryNotAllowedError
from ravehub_gateway.domain.models import DeliveryMode, PaymentStatus


def ensure_delivery_allowed(
    payment_status: str,
    delivery_mode: Optional[str],
    download_available_at: Optional[datetime] = None,
    required_mode: Optional[DeliveryMode] = None,
    now: Optional[datetime] = None,
) -> None:
    """
    Raise DeliveryNotAllowedError unless tickets may be delivered.

    Delivery is gated on an approved payment, a reached download date, and
    (for manual uploads) a transaction configured for manual delivery.
    """
    if payment_status != PaymentStatus.APPROVED.value:
        raise DeliveryNotAllowedError("Transaction not approved yet")

    if download_available_at is not None:
        now = now or datetime.now(timezone.utc)
        if download_available_at.tzinfo is None:
            download_available_at = download_available_at.replace(tzinfo=timezone.utc)
        if now < download_available_at:
            raise DeliveryNotAllowedError("Tickets not available for download yet")

    if required_mode == DeliveryMode.MANUAL_UPLOAD and delivery_mode != DeliveryMode.MANUAL_UPLOAD.value:
        raise DeliveryNotAllowedError("Transaction does not require manual upload")
