from typing import Annotated

from fastapi import APIRouter, Depends

from budget_ledger.api.dependencies import get_controller
from budget_ledger.api.routes.transactions import build_criteria
from budget_ledger.api.schemas import SummaryResponse
from budget_ledger.controller import LedgerController
from budget_ledger.models import CategorySummary, MonthlyTrendPoint, TransactionType

router = APIRouter()


@router.get("/api/summary")
async def get_summary(
    controller: Annotated[LedgerController, Depends(get_controller)],
    category: str | None = None,
    type: TransactionType | None = None,
    date_range: str | None = None,
) -> SummaryResponse:
    criteria = build_criteria(controller, category, type, date_range)
    totals = controller.summary(criteria)
    return SummaryResponse(income=totals.income, expenses=totals.expenses, balance=totals.balance)


@router.get("/api/breakdown")
async def get_breakdown(
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> list[CategorySummary]:
    return controller.category_breakdown()


@router.get("/api/trend")
async def get_trend(
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> list[MonthlyTrendPoint]:
    return controller.monthly_trend()
