from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import ValidationError

from budget_ledger.api.dependencies import get_controller
from budget_ledger.controller import LedgerController
from budget_ledger.domain.errors import NotFoundError
from budget_ledger.models import FilterCriteria, Transaction, TransactionInput, TransactionType

router = APIRouter()


def build_criteria(
    controller: LedgerController,
    category: str | None,
    transaction_type: TransactionType | None,
    date_range: str | None,
) -> FilterCriteria:
    """Merge query parameters over the controller's current filters."""
    current = controller.filters
    try:
        return FilterCriteria(
            category=category if category is not None else current.category,
            type=transaction_type if transaction_type is not None else current.type,
            date_range_days=date_range if date_range is not None else current.date_range_days,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail="Invalid filter parameters") from exc


@router.get("/api/transactions")
async def list_transactions(
    controller: Annotated[LedgerController, Depends(get_controller)],
    category: str | None = None,
    type: TransactionType | None = None,
    date_range: str | None = None,
) -> list[Transaction]:
    criteria = build_criteria(controller, category, type, date_range)
    return controller.filtered_transactions(criteria)


@router.post("/api/transactions", status_code=201)
async def add_transaction(
    data: TransactionInput,
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> Transaction:
    return controller.add_transaction(data)


@router.put("/api/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    data: TransactionInput,
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> Transaction:
    try:
        return controller.update_transaction(transaction_id, data)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/api/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: str,
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> Response:
    controller.delete_transaction(transaction_id)
    return Response(status_code=204)


@router.put("/api/filters")
async def set_filters(
    criteria: FilterCriteria,
    controller: Annotated[LedgerController, Depends(get_controller)],
) -> FilterCriteria:
    controller.filters = criteria
    return criteria
