from typing import Annotated

from fastapi import APIRouter, Depends

from budget_ledger.api.dependencies import get_controller
from budget_ledger.controller import LedgerController
from budget_ledger.models import InsightsReport

router = APIRouter()


@router.get("/api/insights", response_model=InsightsReport | None)
async def get_insights(
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> InsightsReport | None:
    return controller.insights


@router.post("/api/insights/refresh", response_model=InsightsReport | None)
async def refresh_insights(
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> InsightsReport | None:
    """Run one insights request now; a failure keeps the previous report."""
    await controller.orchestrator.request_insights(controller.store.list())
    return controller.insights
