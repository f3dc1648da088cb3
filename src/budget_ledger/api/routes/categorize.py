from typing import Annotated

from fastapi import APIRouter, Depends

from budget_ledger.api.dependencies import get_orchestrator
from budget_ledger.api.schemas import CategorizeRequest
from budget_ledger.models import CATEGORIES, CategorizationResult
from budget_ledger.services.enrichment import EnrichmentOrchestrator

router = APIRouter()


@router.get("/categories")
async def get_categories() -> list[str]:
    return list(CATEGORIES)


@router.post("/api/categorize", response_model=CategorizationResult | None)
async def categorize_transaction(
    req: CategorizeRequest,
    orchestrator: Annotated[EnrichmentOrchestrator, Depends(get_orchestrator)],
) -> CategorizationResult | None:
    """Ask the agent for a category without touching the ledger draft.

    The result is returned to the caller only; the controller's draft and its
    held categorization stay as they are. ``null`` means the agent call failed.
    """
    return await orchestrator.request_categorization(req.description, req.amount, req.type)
