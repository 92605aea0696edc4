"""Installment plan calculator for ticket purchases paid in monthly installments"""

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import List, Optional, Union
from dateutil.relativedelta import relativedelta

from ravehub_gateway.domain.models import InstallmentItem, InstallmentPlanResult, PlanError

CENT = Decimal("0.01")

# Largest amount a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")
MAX_INSTALLMENTS = 120

Amount = Union[Decimal, int, float, str]

_ERROR_MESSAGES = {
    PlanError.INVALID_TOTAL_AMOUNT: "Total amount must be greater than 0",
    PlanError.INVALID_RESERVATION_AMOUNT: "Reservation amount cannot be negative",
    PlanError.RESERVATION_EXCEEDS_TOTAL: "Reservation amount cannot be greater than or equal to total amount",
    PlanError.INVALID_INSTALLMENTS_COUNT: "Installments count must be at least 1",
}


def to_decimal(value: Amount) -> Optional[Decimal]:
    """
    Convert a money amount to Decimal without picking up binary float noise.

    Returns None for anything that is not a finite number (garbage text, NaN,
    infinities) so callers can report it instead of raising.
    """
    if isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _failure(code: PlanError, message: Optional[str] = None) -> InstallmentPlanResult:
    return InstallmentPlanResult(success=False, error=message or _ERROR_MESSAGES[code], error_code=code)


def calculate_installment_plan(
    total_amount: Amount,
    reservation_amount: Amount,
    installments_count: int,
    start_date: date,
) -> InstallmentPlanResult:
    """
    Split the balance left after the reservation into monthly installments.

    Requirements:
    - Every installment but the last is the monthly share floored to cents
    - Last installment absorbs the rounding slack so the sum is exact
    - Due dates advance by calendar months from start_date; days that do not
      exist in the target month clip to its last day

    Args:
        total_amount: Full ticket price
        reservation_amount: Upfront payment, 0 <= reservation < total
        installments_count: Number of monthly payments after the reservation
        start_date: Due date of installment #1

    Returns:
        InstallmentPlanResult with success=False and an error_code when the
        inputs are invalid. Never raises for bad amounts.

    Example:
        total 100, reservation 20, 3 installments
        80 / 3 = 26.666.. -> 26.66, 26.66, last 80 - 53.32 = 26.68
    """
    total = to_decimal(total_amount)
    reservation = to_decimal(reservation_amount)

    if total is None or total <= 0:
        return _failure(PlanError.INVALID_TOTAL_AMOUNT)
    if total > MAX_AMOUNT:
        return _failure(PlanError.INVALID_TOTAL_AMOUNT, f"Total amount cannot exceed {MAX_AMOUNT}")
    if reservation is None:
        return _failure(PlanError.INVALID_RESERVATION_AMOUNT, "Reservation amount must be a number")
    if reservation < 0:
        return _failure(PlanError.INVALID_RESERVATION_AMOUNT)
    if reservation >= total:
        return _failure(PlanError.RESERVATION_EXCEEDS_TOTAL)
    if isinstance(installments_count, bool) or not isinstance(installments_count, int) or installments_count <= 0:
        return _failure(PlanError.INVALID_INSTALLMENTS_COUNT)
    if installments_count > MAX_INSTALLMENTS:
        return _failure(
            PlanError.INVALID_INSTALLMENTS_COUNT,
            f"Installments count cannot exceed {MAX_INSTALLMENTS}",
        )

    remaining = total - reservation
    monthly = (remaining / installments_count).quantize(CENT, rounding=ROUND_DOWN)

    installments: List[InstallmentItem] = []
    running_sum = Decimal("0")
    for number in range(1, installments_count + 1):
        if number == installments_count:
            amount = (remaining - running_sum).quantize(CENT, rounding=ROUND_HALF_UP)
        else:
            amount = monthly
            running_sum += amount

        # Always offset from start_date so a clipped month does not shift later ones
        try:
            due_date = start_date + relativedelta(months=number - 1)
        except (ValueError, OverflowError):
            return _failure(
                PlanError.INVALID_INSTALLMENTS_COUNT,
                "Installment schedule extends past the supported date range",
            )
        installments.append(InstallmentItem(installment_number=number, amount=amount, due_date=due_date))

    return InstallmentPlanResult(
        success=True,
        total_amount=total,
        reservation_amount=reservation,
        remaining_amount=remaining,
        monthly_amount=monthly,
        installments=installments,
    )
