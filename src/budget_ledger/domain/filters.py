import datetime as dt
from collections.abc import Iterable

from budget_ledger.models import FilterCriteria, Transaction


def cutoff_date(date_range_days: int | str, today: dt.date | None = None) -> dt.date | None:
    if date_range_days == "all":
        return None
    return (today or dt.date.today()) - dt.timedelta(days=int(date_range_days))


def matches(transaction: Transaction, criteria: FilterCriteria, cutoff: dt.date | None) -> bool:
    if criteria.category and transaction.category != criteria.category:
        return False
    if criteria.type is not None and transaction.type != criteria.type:
        return False
    if cutoff is not None and transaction.date < cutoff:
        return False
    return True


def select(
    snapshot: Iterable[Transaction],
    criteria: FilterCriteria,
    *,
    today: dt.date | None = None,
) -> list[Transaction]:
    """Return the transactions matching every set criterion, newest first.

    The date window is inclusive at day granularity: with a 30 day range a
    transaction dated exactly 30 days before ``today`` is kept. Transactions
    sharing a date keep their order from ``snapshot``.
    """
    cutoff = cutoff_date(criteria.date_range_days, today)
    selected = [t for t in snapshot if matches(t, criteria, cutoff)]
    # sorted() stays stable with reverse=True.
    return sorted(selected, key=lambda t: t.date, reverse=True)
