from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from budget_ledger.models import (
    CATEGORIES,
    CategorySummary,
    LedgerSummary,
    MonthlyTrendPoint,
    Transaction,
    TransactionType,
)

# Fixed English labels; strftime("%b") would follow the process locale.
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

CURRENCY_PLACES = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """Round to currency precision. Only for values about to be displayed."""
    return value.quantize(CURRENCY_PLACES, rounding=ROUND_HALF_UP)


def summary(transactions: Iterable[Transaction]) -> LedgerSummary:
    income = Decimal(0)
    expenses = Decimal(0)
    for transaction in transactions:
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expenses += transaction.amount
    return LedgerSummary(income=income, expenses=expenses, balance=income - expenses)


def category_breakdown(
    transactions: Iterable[Transaction],
    categories: Sequence[str] = CATEGORIES,
) -> list[CategorySummary]:
    """Sum expenses per canonical category, in canonical order, skipping empty ones."""
    totals = {category: Decimal(0) for category in categories}
    for transaction in transactions:
        if transaction.type == TransactionType.EXPENSE and transaction.category in totals:
            totals[transaction.category] += transaction.amount
    return [
        CategorySummary(category=category, amount=amount)
        for category, amount in totals.items()
        if amount != 0
    ]


def month_label(transaction: Transaction) -> str:
    return MONTH_LABELS[transaction.date.month - 1]


def monthly_trend(transactions: Iterable[Transaction]) -> list[MonthlyTrendPoint]:
    """Income and expenses per month label, in order of first appearance.

    The label carries no year, so e.g. January 2023 and January 2024 fall
    into the same "Jan" group.
    """
    groups: dict[str, list[Decimal]] = {}
    for transaction in transactions:
        totals = groups.setdefault(month_label(transaction), [Decimal(0), Decimal(0)])
        if transaction.type == TransactionType.INCOME:
            totals[0] += transaction.amount
        else:
            totals[1] += transaction.amount
    return [
        MonthlyTrendPoint(month=month, income=income, expenses=expenses)
        for month, (income, expenses) in groups.items()
    ]
