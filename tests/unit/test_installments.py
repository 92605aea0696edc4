"""Unit tests for the installment plan calculator"""

import pytest
from datetime import date
from decimal import Decimal
from dateutil.relativedelta import relativedelta
from ravehub_gateway.domain.installments import MAX_AMOUNT, MAX_INSTALLMENTS, calculate_installment_plan
from ravehub_gateway.domain.models import PlanError


START = date(2025, 3, 15)


def test_single_installment_covers_everything():
    """100 with no reservation in one installment"""
    plan = calculate_installment_plan(100, 0, 1, START)

    assert plan.success is True
    assert len(plan.installments) == 1
    assert plan.installments[0].installment_number == 1
    assert plan.installments[0].amount == Decimal("100.00")
    assert plan.installments[0].due_date == START


def test_last_installment_absorbs_rounding():
    """80 / 3 = 26.666.. -> 26.66, 26.66, 26.68"""
    plan = calculate_installment_plan(100, 20, 3, START)

    assert plan.success is True
    assert plan.remaining_amount == Decimal("80")
    assert plan.monthly_amount == Decimal("26.66")
    assert [inst.amount for inst in plan.installments] == [
        Decimal("26.66"),
        Decimal("26.66"),
        Decimal("26.68"),
    ]
    assert sum(inst.amount for inst in plan.installments) == Decimal("80.00")


def test_installments_numbered_from_one():
    plan = calculate_installment_plan(500, 100, 4, START)
    assert [inst.installment_number for inst in plan.installments] == [1, 2, 3, 4]


def test_float_inputs_do_not_drift():
    """0.3 - 0.1 is exactly 0.2 once amounts are Decimals"""
    plan = calculate_installment_plan(0.3, 0.1, 2, START)

    assert plan.remaining_amount == Decimal("0.2")
    assert [inst.amount for inst in plan.installments] == [Decimal("0.10"), Decimal("0.10")]


@pytest.mark.parametrize(
    "total, reservation, count",
    [
        ("0.05", "0", 12),
        ("1", "0", 3),
        ("99.99", "10.01", 7),
        ("1000.01", "250", 11),
        ("123456.78", "0.01", 9),
        ("149900", "49900", 6),
    ],
)
def test_schedule_sums_exactly_and_never_goes_negative(total, reservation, count):
    plan = calculate_installment_plan(Decimal(total), Decimal(reservation), count, START)
    amounts = [inst.amount for inst in plan.installments]

    assert plan.success is True
    assert sum(amounts) == Decimal(total) - Decimal(reservation)
    assert all(amount >= 0 for amount in amounts)
    assert all(amount == plan.monthly_amount for amount in amounts[:-1])
    assert all(amount == amount.quantize(Decimal("0.01")) for amount in amounts)


def test_due_dates_advance_by_calendar_month():
    plan = calculate_installment_plan(1200, 0, 12, START)
    dates = [inst.due_date for inst in plan.installments]

    assert dates[0] == START
    for earlier, later in zip(dates, dates[1:]):
        assert later == earlier + relativedelta(months=1)
    assert dates[-1] == date(2026, 2, 15)


def test_due_dates_clip_to_end_of_short_months():
    """Jan 31 -> Feb 28 -> Mar 31: each date is offset from the start, not chained"""
    plan = calculate_installment_plan(300, 0, 3, date(2025, 1, 31))
    assert [inst.due_date for inst in plan.installments] == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
    ]


def test_due_dates_clip_to_leap_day():
    plan = calculate_installment_plan(200, 0, 2, date(2024, 1, 30))
    assert plan.installments[1].due_date == date(2024, 2, 29)


@pytest.mark.parametrize(
    "total, reservation, count, code",
    [
        (-5, 0, 1, PlanError.INVALID_TOTAL_AMOUNT),
        (0, 0, 1, PlanError.INVALID_TOTAL_AMOUNT),
        (100, -1, 1, PlanError.INVALID_RESERVATION_AMOUNT),
        (100, 100, 1, PlanError.RESERVATION_EXCEEDS_TOTAL),
        (100, 150, 2, PlanError.RESERVATION_EXCEEDS_TOTAL),
        (100, 0, 0, PlanError.INVALID_INSTALLMENTS_COUNT),
        (100, 0, -3, PlanError.INVALID_INSTALLMENTS_COUNT),
    ],
)
def test_invalid_inputs_return_failure(total, reservation, count, code):
    plan = calculate_installment_plan(total, reservation, count, START)

    assert plan.success is False
    assert plan.error_code == code
    assert plan.error
    assert plan.installments == []


def test_reservation_equal_to_total_message():
    plan = calculate_installment_plan(100, 100, 1, START)
    assert plan.error == "Reservation amount cannot be greater than or equal to total amount"


@pytest.mark.parametrize(
    "total, reservation, code",
    [
        ("abc", 0, PlanError.INVALID_TOTAL_AMOUNT),
        (float("nan"), 0, PlanError.INVALID_TOTAL_AMOUNT),
        (float("inf"), 0, PlanError.INVALID_TOTAL_AMOUNT),
        (Decimal("NaN"), 0, PlanError.INVALID_TOTAL_AMOUNT),
        (None, 0, PlanError.INVALID_TOTAL_AMOUNT),
        (100, "twenty", PlanError.INVALID_RESERVATION_AMOUNT),
        (100, float("nan"), PlanError.INVALID_RESERVATION_AMOUNT),
    ],
)
def test_non_numeric_amounts_return_failure(total, reservation, code):
    plan = calculate_installment_plan(total, reservation, 3, START)

    assert plan.success is False
    assert plan.error_code == code
    assert plan.installments == []


def test_amount_beyond_storage_range_returns_failure():
    plan = calculate_installment_plan("1e30", 0, 3, START)

    assert plan.success is False
    assert plan.error_code == PlanError.INVALID_TOTAL_AMOUNT
    assert plan.error == "Total amount cannot exceed 9999999999.99"


def test_largest_storable_amount_still_plans():
    plan = calculate_installment_plan(MAX_AMOUNT, 0, 3, START)

    assert plan.success is True
    assert sum(inst.amount for inst in plan.installments) == MAX_AMOUNT


def test_too_many_installments_returns_failure():
    plan = calculate_installment_plan(100, 0, 120000, START)

    assert plan.success is False
    assert plan.error_code == PlanError.INVALID_INSTALLMENTS_COUNT
    assert plan.error == f"Installments count cannot exceed {MAX_INSTALLMENTS}"


def test_schedule_past_year_9999_returns_failure():
    plan = calculate_installment_plan(100, 0, 12, date(9999, 6, 1))

    assert plan.success is False
    assert plan.error_code == PlanError.INVALID_INSTALLMENTS_COUNT
    assert plan.installments == []
