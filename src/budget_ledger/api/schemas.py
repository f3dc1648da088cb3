from decimal import Decimal

from pydantic import BaseModel, field_serializer

from budget_ledger.domain.aggregation import quantize_amount
from budget_ledger.models import TransactionType


class CategorizeRequest(BaseModel):
    description: str
    amount: Decimal | None = None
    type: TransactionType = TransactionType.EXPENSE


class SummaryResponse(BaseModel):
    income: Decimal
    expenses: Decimal
    balance: Decimal

    @field_serializer("income", "expenses", "balance")
    def round_figures(self, value: Decimal) -> str:
        return str(quantize_amount(value))
