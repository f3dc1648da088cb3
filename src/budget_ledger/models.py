import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_serializer

CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Entertainment",
    "Bills & Utilities",
    "Healthcare",
    "Education",
    "Personal Care",
    "Home & Garden",
    "Travel",
    "Gifts & Donations",
    "Investment",
    "Salary",
    "Freelance",
    "Other",
)


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


def json_number(value: Decimal) -> int | float:
    """Render a Decimal the way a JSON client would write the same number."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class TransactionInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(gt=0)
    category: str = ""
    description: str = ""
    date: dt.date
    type: TransactionType

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> int | float:
        return json_number(amount)


class Transaction(TransactionInput):
    id: str


class FilterCriteria(BaseModel):
    category: str | None = None
    type: TransactionType | None = None
    date_range_days: PositiveInt | Literal["all"] = "all"


class LedgerSummary(BaseModel):
    income: Decimal
    expenses: Decimal
    balance: Decimal


class CategorySummary(BaseModel):
    category: str
    amount: Decimal = Field(ge=0)


class MonthlyTrendPoint(BaseModel):
    month: str
    income: Decimal
    expenses: Decimal


class TransactionDraft(BaseModel):
    """The transaction currently being entered or edited."""

    model_config = ConfigDict(validate_assignment=True)

    amount: Decimal | None = None
    category: str = ""
    description: str = ""
    type: TransactionType = TransactionType.EXPENSE
    date: dt.date = Field(default_factory=dt.date.today)

    def to_input(self) -> TransactionInput:
        return TransactionInput(
            amount=self.amount,
            category=self.category,
            description=self.description,
            date=self.date,
            type=self.type,
        )


class TopCategory(BaseModel):
    category: str
    amount: float
    percentage: float


class InsightsSummary(BaseModel):
    total_income: float
    total_expenses: float
    balance: float
    savings_rate: float
    top_spending_categories: list[TopCategory]
    monthly_trend: list[MonthlyTrendPoint]


class InsightsMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    analysis_timestamp: str | None = None
    data_period: str | None = None
    transaction_count: int | None = None


class InsightsReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: InsightsSummary
    insights: list[str]
    recommendations: list[str]
    confidence_score: float = Field(ge=0.0, le=1.0)
    metadata: InsightsMetadata | None = None


class CategorizationMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    processing_time: str | None = None
    patterns_matched: list[str] = Field(default_factory=list)
    version: str | None = None


class CategorizationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary_category: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    alternative_categories: list[str] = Field(default_factory=list)
    reasoning: str = ""
    metadata: CategorizationMetadata | None = None
