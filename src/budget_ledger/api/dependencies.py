from fastapi import HTTPException, Request

from budget_ledger.controller import LedgerController
from budget_ledger.services.enrichment import EnrichmentOrchestrator


def get_controller(request: Request) -> LedgerController:
    controller = getattr(request.app.state, "controller", None)
    if not controller:
        raise HTTPException(status_code=500, detail="Ledger not initialized")
    return controller


def get_orchestrator(request: Request) -> EnrichmentOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if not orchestrator:
        raise HTTPException(status_code=500, detail="Enrichment not initialized")
    return orchestrator
