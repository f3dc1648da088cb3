import asyncio
import datetime as dt
from collections.abc import Coroutine
from typing import Any

from budget_ledger.core import settings
from budget_ledger.domain import aggregation
from budget_ledger.domain.filters import select
from budget_ledger.logger import get_logger
from budget_ledger.models import (
    CategorizationResult,
    CategorySummary,
    FilterCriteria,
    InsightsReport,
    LedgerSummary,
    MonthlyTrendPoint,
    Transaction,
    TransactionDraft,
    TransactionInput,
)
from budget_ledger.services.enrichment import EnrichmentOrchestrator
from budget_ledger.store import TransactionStore

logger = get_logger(__name__)


class LedgerController:
    """Owns the ledger and wires store mutations to enrichment.

    Every successful add schedules one insights request in the background.
    Updates and deletes do not. Category suggestions write into whichever
    draft is current when the agent answers, even if the form that asked
    has been reset since.
    """

    def __init__(
        self,
        store: TransactionStore,
        orchestrator: EnrichmentOrchestrator,
        *,
        filters: FilterCriteria | None = None,
        discard_stale_responses: bool | None = None,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.filters = filters or FilterCriteria(date_range_days=settings.DATE_RANGE_DAYS)
        if discard_stale_responses is None:
            discard_stale_responses = settings.DISCARD_STALE_RESPONSES
        self.discard_stale_responses = discard_stale_responses

        self.draft = TransactionDraft()
        self.editing_id: str | None = None
        self.categorization: CategorizationResult | None = None

        self._tasks: set[asyncio.Task[Any]] = set()
        self._category_applied = 0

    # Ledger mutations

    def add_transaction(self, data: TransactionInput) -> Transaction:
        # Fail before mutating when there is no loop to run the insights task.
        asyncio.get_running_loop()
        transaction = self.store.add(data)
        logger.info(
            "[LEDGER] Added %s %s '%s' (%s).",
            transaction.type.value,
            transaction.amount,
            transaction.description[:50],
            transaction.id,
        )
        self._spawn(self.orchestrator.request_insights(self.store.list()))
        return transaction

    def update_transaction(self, transaction_id: str, data: TransactionInput) -> Transaction:
        transaction = self.store.update(transaction_id, data)
        logger.info("[LEDGER] Updated transaction %s.", transaction_id)
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        removed = self.store.remove(transaction_id)
        if removed:
            logger.info("[LEDGER] Deleted transaction %s.", transaction_id)
        return removed

    # Draft handling

    def open_edit_form(self, transaction_id: str) -> TransactionDraft:
        transaction = self.store.get(transaction_id)
        self.draft = TransactionDraft(
            amount=transaction.amount,
            category=transaction.category,
            description=transaction.description,
            type=transaction.type,
            date=transaction.date,
        )
        self.editing_id = transaction_id
        return self.draft

    def reset_draft(self) -> None:
        self.draft = TransactionDraft()
        self.editing_id = None
        self.categorization = None

    def submit_draft(self) -> Transaction:
        data = self.draft.to_input()
        if self.editing_id is not None:
            transaction = self.update_transaction(self.editing_id, data)
        else:
            transaction = self.add_transaction(data)
        self.reset_draft()
        return transaction

    async def suggest_category(self, description: str) -> CategorizationResult | None:
        seq = self.orchestrator.next_categorization_seq()
        result = await self.orchestrator.request_categorization(
            description,
            self.draft.amount,
            self.draft.type,
            seq=seq,
        )
        if result is None:
            return None

        if self.discard_stale_responses and seq < self._category_applied:
            logger.info(
                "[CATEGORIZE] Suggestion #%d for '%s' is older than #%d; discarding.",
                seq,
                description[:50],
                self._category_applied,
            )
            return None

        self._category_applied = max(self._category_applied, seq)
        self.categorization = result
        self.draft.category = result.primary_category
        return result

    def request_category_suggestion(self, description: str) -> asyncio.Task[CategorizationResult | None]:
        return self._spawn(self.suggest_category(description))

    # Queries

    def filtered_transactions(
        self,
        criteria: FilterCriteria | None = None,
        *,
        today: dt.date | None = None,
    ) -> list[Transaction]:
        return select(self.store.list(), criteria or self.filters, today=today)

    def summary(
        self,
        criteria: FilterCriteria | None = None,
        *,
        today: dt.date | None = None,
    ) -> LedgerSummary:
        return aggregation.summary(self.filtered_transactions(criteria, today=today))

    def category_breakdown(self) -> list[CategorySummary]:
        return aggregation.category_breakdown(self.store.list())

    def monthly_trend(self) -> list[MonthlyTrendPoint]:
        return aggregation.monthly_trend(self.store.list())

    @property
    def insights(self) -> InsightsReport | None:
        return self.orchestrator.insights

    # Background work

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every background enrichment request has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
