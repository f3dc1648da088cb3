from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from budget_ledger.api.routes import analytics, categorize, insights, transactions
from budget_ledger.controller import LedgerController
from budget_ledger.core import settings
from budget_ledger.integration.agent import AgentClient
from budget_ledger.logger import get_logger, setup_logging
from budget_ledger.services.enrichment import EnrichmentOrchestrator
from budget_ledger.store import TransactionStore

logger = get_logger(__name__)


def create_app(agent: AgentClient | None = None) -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing ledger...")
        settings.log_environment()

        if not settings.AGENT_API_KEY:
            logger.warning("AGENT_API_KEY not set. Enrichment requests will likely be rejected.")

        client = agent or AgentClient()
        store = TransactionStore()
        orchestrator = EnrichmentOrchestrator(
            client,
            discard_stale_responses=settings.DISCARD_STALE_RESPONSES,
        )
        controller = LedgerController(store, orchestrator)

        app.state.agent = client
        app.state.store = store
        app.state.orchestrator = orchestrator
        app.state.controller = controller

        logger.info("Ledger initialized.")
        yield
        logger.info("Ledger shutting down; waiting for %d enrichment request(s).", controller.pending)
        await controller.drain()
        await client.aclose()

    app = FastAPI(title="Budget Ledger", lifespan=lifespan)

    app.include_router(categorize.router)
    app.include_router(transactions.router)
    app.include_router(analytics.router)
    app.include_router(insights.router)

    return app


app = create_app()
