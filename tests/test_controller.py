import asyncio
import json
from datetime import date, timedelta
from decimal import Decimal

import pytest
from agent_fakes import FailingAgent, FakeAgent, GatedAgent, ResettingAgent, categorization_reply, insights_reply

from budget_ledger.controller import LedgerController
from budget_ledger.domain.errors import NotFoundError
from budget_ledger.models import FilterCriteria, TransactionInput, TransactionType
from budget_ledger.services.enrichment import EnrichmentOrchestrator
from budget_ledger.store import TransactionStore

CAT_AGENT = "cat-agent"
INS_AGENT = "ins-agent"


def _controller(agent, **kwargs) -> LedgerController:
    orchestrator = EnrichmentOrchestrator(
        agent,
        categorization_agent_id=CAT_AGENT,
        insights_agent_id=INS_AGENT,
    )
    kwargs.setdefault("discard_stale_responses", False)
    return LedgerController(TransactionStore(), orchestrator, **kwargs)


def _input(amount: str = "40", *, tx_type: TransactionType = TransactionType.EXPENSE, **overrides) -> TransactionInput:
    fields = {
        "amount": Decimal(amount),
        "category": "Food & Dining",
        "description": "Groceries",
        "date": date.today(),
        "type": tx_type,
    }
    fields.update(overrides)
    return TransactionInput(**fields)


@pytest.mark.anyio
async def test_add_triggers_one_insights_request_with_full_ledger() -> None:
    agent = FakeAgent()
    agent.queue(INS_AGENT, insights_reply(count=1), insights_reply(insights=["two"], count=2))
    controller = _controller(agent)

    first = controller.add_transaction(_input())
    await controller.drain()
    second = controller.add_transaction(_input("100", tx_type=TransactionType.INCOME, category="Salary"))
    await controller.drain()

    assert [call[0] for call in agent.calls] == [INS_AGENT, INS_AGENT]
    assert [t["id"] for t in json.loads(agent.calls[1][1])] == [first.id, second.id]
    assert controller.insights is not None
    assert controller.insights.insights == ["two"]


@pytest.mark.anyio
async def test_update_and_delete_do_not_request_insights() -> None:
    agent = FakeAgent()
    agent.queue(INS_AGENT, insights_reply())
    controller = _controller(agent)
    tx = controller.add_transaction(_input())
    await controller.drain()

    controller.update_transaction(tx.id, _input("41"))
    controller.delete_transaction(tx.id)
    await controller.drain()

    assert len(agent.calls) == 1
    assert controller.pending == 0


@pytest.mark.anyio
async def test_failing_agent_never_clears_insights() -> None:
    agent = FakeAgent()
    agent.queue(INS_AGENT, insights_reply())
    controller = _controller(agent)
    controller.add_transaction(_input())
    await controller.drain()
    before = controller.insights

    controller.orchestrator.client = FailingAgent()
    controller.add_transaction(_input("5"))
    await controller.drain()

    assert controller.insights is before
    assert len(controller.store) == 2


@pytest.mark.anyio
async def test_ledger_stays_usable_without_enrichment() -> None:
    controller = _controller(FailingAgent())

    tx = controller.add_transaction(_input())
    await controller.drain()

    assert controller.insights is None
    assert controller.store.list() == [tx]
    assert await controller.suggest_category("Coffee") is None
    assert controller.draft.category == ""


@pytest.mark.anyio
async def test_drain_survives_socket_errors_from_the_client() -> None:
    controller = _controller(ResettingAgent())

    tx = controller.add_transaction(_input())
    await controller.drain()

    assert controller.pending == 0
    assert controller.insights is None
    assert controller.store.list() == [tx]
    assert await controller.suggest_category("Coffee") is None


@pytest.mark.anyio
async def test_unknown_id_update_raises_not_found() -> None:
    controller = _controller(FakeAgent())
    with pytest.raises(NotFoundError):
        controller.update_transaction("missing", _input())
    assert controller.delete_transaction("missing") is False


@pytest.mark.anyio
async def test_suggestion_prefills_draft_category() -> None:
    agent = FakeAgent()
    agent.queue(CAT_AGENT, categorization_reply("Food & Dining", 0.92))
    controller = _controller(agent)
    controller.draft.amount = Decimal("4.50")
    controller.draft.description = "Coffee"

    result = await controller.suggest_category("Coffee")

    assert result is not None
    assert controller.draft.category == "Food & Dining"
    assert controller.categorization == result
    assert agent.calls == [(CAT_AGENT, '{"description":"Coffee","amount":4.5,"type":"expense"}')]


@pytest.mark.anyio
async def test_last_resolved_suggestion_wins() -> None:
    agent = GatedAgent({
        "Coffee": categorization_reply("Food & Dining"),
        "Rent": categorization_reply("Bills & Utilities"),
    })
    controller = _controller(agent)

    coffee = controller.request_category_suggestion("Coffee")
    rent = controller.request_category_suggestion("Rent")
    await asyncio.sleep(0)
    assert [payload["description"] for _, payload in agent.calls] == ["Coffee", "Rent"]

    agent.release("Rent")
    await rent
    assert controller.draft.category == "Bills & Utilities"

    agent.release("Coffee")
    await coffee
    assert controller.draft.category == "Food & Dining"
    assert controller.categorization is not None
    assert controller.categorization.primary_category == "Food & Dining"


@pytest.mark.anyio
async def test_stale_suggestion_is_dropped_when_sequencing_enabled() -> None:
    agent = GatedAgent({
        "Coffee": categorization_reply("Food & Dining"),
        "Rent": categorization_reply("Bills & Utilities"),
    })
    controller = _controller(agent, discard_stale_responses=True)

    coffee = controller.request_category_suggestion("Coffee")
    rent = controller.request_category_suggestion("Rent")
    await asyncio.sleep(0)

    agent.release("Rent")
    await rent
    agent.release("Coffee")
    assert await coffee is None

    assert controller.draft.category == "Bills & Utilities"
    assert controller.categorization is not None
    assert controller.categorization.primary_category == "Bills & Utilities"


@pytest.mark.anyio
async def test_late_suggestion_still_lands_after_form_reset() -> None:
    agent = GatedAgent({"Taxi": categorization_reply("Transportation")})
    controller = _controller(agent)
    controller.draft.description = "Taxi"

    pending = controller.request_category_suggestion("Taxi")
    await asyncio.sleep(0)
    controller.reset_draft()
    assert controller.draft.category == ""

    agent.release("Taxi")
    await pending

    assert controller.draft.category == "Transportation"
    assert controller.draft.description == ""


@pytest.mark.anyio
async def test_submit_draft_adds_then_edits() -> None:
    agent = FakeAgent()
    agent.queue(INS_AGENT, insights_reply())
    controller = _controller(agent)

    controller.draft.amount = Decimal("12")
    controller.draft.category = "Shopping"
    controller.draft.description = "Socks"
    created = controller.submit_draft()
    await controller.drain()

    assert controller.draft.description == ""
    assert controller.editing_id is None

    draft = controller.open_edit_form(created.id)
    assert draft.description == "Socks"
    assert controller.editing_id == created.id
    draft.description = "Wool socks"
    updated = controller.submit_draft()
    await controller.drain()

    assert updated.id == created.id
    assert controller.store.list()[0].description == "Wool socks"
    assert len(agent.calls) == 1


def test_reset_draft_clears_categorization() -> None:
    controller = _controller(FakeAgent())
    controller.categorization = object()  # type: ignore[assignment]
    controller.editing_id = "abc"

    controller.reset_draft()

    assert controller.categorization is None
    assert controller.editing_id is None
    assert controller.draft.type == TransactionType.EXPENSE
    assert controller.draft.date == date.today()


def test_add_outside_event_loop_does_not_mutate() -> None:
    controller = _controller(FakeAgent())
    with pytest.raises(RuntimeError):
        controller.add_transaction(_input())
    assert len(controller.store) == 0


@pytest.mark.anyio
async def test_dashboard_summary_uses_filters_but_charts_use_everything() -> None:
    agent = FakeAgent()
    controller = _controller(agent, filters=FilterCriteria(date_range_days=30))
    today = date.today()
    controller.add_transaction(_input("100", tx_type=TransactionType.INCOME, category="Salary", date=today))
    controller.add_transaction(_input("40", date=today - timedelta(days=5)))
    controller.add_transaction(_input("500", category="Travel", date=today - timedelta(days=200)))
    await controller.drain()

    totals = controller.summary(today=today)
    assert (totals.income, totals.expenses, totals.balance) == (100, 40, 60)

    breakdown = {entry.category: entry.amount for entry in controller.category_breakdown()}
    assert breakdown == {"Food & Dining": 40, "Travel": 500}
    assert sum(point.expenses for point in controller.monthly_trend()) == 540

    everything = controller.filtered_transactions(FilterCriteria(), today=today)
    assert len(everything) == 3
    assert everything[-1].category == "Travel"
