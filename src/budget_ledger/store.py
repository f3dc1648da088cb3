import random
import string
from collections.abc import Callable

from budget_ledger.domain.errors import NotFoundError
from budget_ledger.logger import get_logger
from budget_ledger.models import Transaction, TransactionInput

logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(length: int = 9) -> str:
    """Return a short random base-36 token."""
    return "".join(random.choices(_ID_ALPHABET, k=length))


class TransactionStore:
    """In-memory, insertion-ordered collection of transactions keyed by id."""

    def __init__(self, id_factory: Callable[[], str] = generate_id):
        self._transactions: dict[str, Transaction] = {}
        self._issued_ids: set[str] = set()
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._transactions)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._transactions

    def _next_id(self) -> str:
        # Ids are never reused, even after the transaction is removed.
        while True:
            candidate = self._id_factory()
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def add(self, data: TransactionInput) -> Transaction:
        transaction = Transaction(id=self._next_id(), **_fields(data))
        self._transactions[transaction.id] = transaction
        logger.debug("[STORE] Added transaction %s (%s %s).", transaction.id, transaction.type.value, transaction.amount)
        return transaction

    def get(self, transaction_id: str) -> Transaction:
        try:
            return self._transactions[transaction_id]
        except KeyError:
            raise NotFoundError(transaction_id) from None

    def update(self, transaction_id: str, data: TransactionInput) -> Transaction:
        if transaction_id not in self._transactions:
            logger.warning("[STORE] Update for unknown transaction %s.", transaction_id)
            raise NotFoundError(transaction_id)
        transaction = Transaction(id=transaction_id, **_fields(data))
        # Reassigning an existing key keeps its position.
        self._transactions[transaction_id] = transaction
        logger.debug("[STORE] Updated transaction %s.", transaction_id)
        return transaction

    def remove(self, transaction_id: str) -> bool:
        removed = self._transactions.pop(transaction_id, None) is not None
        if removed:
            logger.debug("[STORE] Removed transaction %s.", transaction_id)
        return removed

    def list(self) -> list[Transaction]:
        return list(self._transactions.values())


def _fields(data: TransactionInput) -> dict:
    return {
        "amount": data.amount,
        "category": data.category,
        "description": data.description,
        "date": data.date,
        "type": data.type,
    }
