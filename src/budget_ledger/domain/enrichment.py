import json
from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from budget_ledger.domain.errors import ParseError
from budget_ledger.domain.json_extract import iter_json
from budget_ledger.models import (
    CategorizationResult,
    InsightsReport,
    Transaction,
    TransactionType,
    json_number,
)


def dump_message(payload: Any) -> str:
    # Compact separators match JSON.stringify output.
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def categorization_payload(
    description: str,
    amount: Decimal | None,
    transaction_type: TransactionType,
) -> dict[str, Any]:
    return {
        "description": description,
        "amount": json_number(amount) if amount is not None else 0,
        "type": transaction_type.value,
    }


def transaction_payload(transaction: Transaction) -> dict[str, Any]:
    return {
        "id": transaction.id,
        "amount": json_number(transaction.amount),
        "category": transaction.category,
        "description": transaction.description,
        "date": transaction.date.isoformat(),
        "type": transaction.type.value,
    }


def insights_payload(transactions: Iterable[Transaction]) -> list[dict[str, Any]]:
    return [transaction_payload(t) for t in transactions]


def _extract_section(text: str, key: str) -> tuple[dict[str, Any], Any]:
    found_object = False
    for data in iter_json(text):
        if not isinstance(data, dict):
            continue
        found_object = True
        section = data.get(key)
        if not isinstance(section, dict):
            continue
        metadata = data.get("metadata")
        if metadata is None:
            metadata = section.get("metadata")
        return section, metadata
    if not found_object:
        raise ParseError("Agent response contained no JSON object")
    raise ParseError(f"Agent response is missing '{key}'")


def parse_categorization(text: str) -> CategorizationResult:
    section, metadata = _extract_section(text, "categorization")
    try:
        return CategorizationResult.model_validate({**section, "metadata": metadata})
    except ValidationError as exc:
        raise ParseError(f"Invalid categorization: {exc.error_count()} error(s)") from exc


def parse_insights(text: str) -> InsightsReport:
    section, metadata = _extract_section(text, "insights_report")
    try:
        return InsightsReport.model_validate({**section, "metadata": metadata})
    except ValidationError as exc:
        raise ParseError(f"Invalid insights report: {exc.error_count()} error(s)") from exc
