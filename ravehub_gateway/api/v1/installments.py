"""POST /v1/installments/plan - preview an installment schedule"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ravehub_gateway.api.v1.schemas import InstallmentSchema, PlanRequest, PlanResponse
from ravehub_gateway.domain.installments import calculate_installment_plan

router = APIRouter()


@router.post("/installments/plan", response_model=PlanResponse, responses={400: {"description": "Invalid plan inputs"}})
def preview_installment_plan(body: PlanRequest):
    """
    Calculate a reservation + monthly installments schedule without persisting it.

    Returns:
        Plan with installment amounts summing exactly to the remaining balance,
        or 400 with the calculator's error and code
    """
    result = calculate_installment_plan(
        body.total_amount,
        body.reservation_amount,
        body.installments_count,
        body.start_date,
    )
    if not result.success:
        return JSONResponse(
            status_code=400,
            content={"error": result.error, "code": result.error_code.value},
        )

    return PlanResponse(
        total_amount=float(result.total_amount),
        reservation_amount=float(result.reservation_amount),
        remaining_amount=float(result.remaining_amount),
        monthly_amount=float(result.monthly_amount),
        installments=[
            InstallmentSchema(
                installment_number=inst.installment_number,
                amount=float(inst.amount),
                due_date=inst.due_date,
            )
            for inst in result.installments
        ],
    )
