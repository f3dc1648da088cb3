from collections.abc import Iterable
from decimal import Decimal
from itertools import count
from time import perf_counter

from budget_ledger.core import settings
from budget_ledger.domain.enrichment import (
    categorization_payload,
    dump_message,
    insights_payload,
    parse_categorization,
    parse_insights,
)
from budget_ledger.domain.errors import EnrichmentError, ParseError, TransportError
from budget_ledger.domain.timefmt import format_duration
from budget_ledger.integration.agent import AgentClient
from budget_ledger.logger import get_logger
from budget_ledger.models import (
    CategorizationResult,
    InsightsReport,
    Transaction,
    TransactionType,
)

logger = get_logger(__name__)


class EnrichmentOrchestrator:
    """Runs categorization and insights requests against the reasoning agent.

    Both requests are single best-effort attempts. Transport and parse
    failures are logged and turned into ``None``; they never reach the
    caller. Requests are not deduplicated or cancelled, so when several are
    in flight the one that resolves last is the one that sticks.

    Only the insights report is held here. Categorization results go back to
    the caller, which decides where they land.
    """

    def __init__(
        self,
        client: AgentClient,
        *,
        categorization_agent_id: str | None = None,
        insights_agent_id: str | None = None,
        discard_stale_responses: bool = False,
    ) -> None:
        self.client = client
        self.categorization_agent_id = categorization_agent_id or settings.CATEGORIZATION_AGENT_ID
        self.insights_agent_id = insights_agent_id or settings.INSIGHTS_AGENT_ID
        self.discard_stale_responses = discard_stale_responses

        self.insights: InsightsReport | None = None

        self._categorization_seq = count(1)
        self._insights_seq = count(1)
        self._applied_insights_seq = 0

    def next_categorization_seq(self) -> int:
        return next(self._categorization_seq)

    async def request_categorization(
        self,
        description: str,
        amount: Decimal | None,
        transaction_type: TransactionType,
        *,
        seq: int | None = None,
    ) -> CategorizationResult | None:
        if seq is None:
            seq = self.next_categorization_seq()
        message = dump_message(categorization_payload(description, amount, transaction_type))
        logger.debug("[CATEGORIZE] #%d requesting category for '%s'.", seq, description[:50])

        started = perf_counter()
        try:
            text = await self.client.send(self.categorization_agent_id, message)
            result = parse_categorization(text)
        except EnrichmentError as exc:
            _log_failure("CATEGORIZE", seq, exc)
            return None
        except Exception as exc:
            logger.warning("[CATEGORIZE] #%d agent call raised %r", seq, exc)
            return None

        logger.info(
            "[CATEGORIZE] #%d '%s' -> '%s' (confidence: %.2f) in %s.",
            seq,
            description[:50],
            result.primary_category,
            result.confidence_score,
            format_duration(perf_counter() - started),
        )
        return result

    async def request_insights(self, transactions: Iterable[Transaction]) -> InsightsReport | None:
        seq = next(self._insights_seq)
        payload = insights_payload(transactions)
        logger.debug("[INSIGHTS] #%d requesting insights over %d transactions.", seq, len(payload))

        started = perf_counter()
        try:
            text = await self.client.send(self.insights_agent_id, dump_message(payload))
            report = parse_insights(text)
        except EnrichmentError as exc:
            _log_failure("INSIGHTS", seq, exc)
            return None
        except Exception as exc:
            logger.warning("[INSIGHTS] #%d agent call raised %r", seq, exc)
            return None

        if self.discard_stale_responses and seq < self._applied_insights_seq:
            logger.info(
                "[INSIGHTS] #%d resolved after #%d was applied; discarding.",
                seq,
                self._applied_insights_seq,
            )
            return None

        self.insights = report
        self._applied_insights_seq = max(self._applied_insights_seq, seq)
        logger.info(
            "[INSIGHTS] #%d report updated (%d insights, %d recommendations) in %s.",
            seq,
            len(report.insights),
            len(report.recommendations),
            format_duration(perf_counter() - started),
        )
        return report


def _log_failure(tag: str, seq: int, exc: EnrichmentError) -> None:
    if isinstance(exc, TransportError):
        logger.warning("[%s] #%d agent call failed: %s", tag, seq, exc)
    elif isinstance(exc, ParseError):
        logger.warning("[%s] #%d could not parse agent response: %s", tag, seq, exc)
    else:
        logger.warning("[%s] #%d enrichment failed: %s", tag, seq, exc)
