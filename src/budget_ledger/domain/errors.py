"""Ledger error types."""


class LedgerError(Exception):
    """Base class for ledger errors."""


class NotFoundError(LedgerError, LookupError):
    """No transaction exists with the requested id."""

    def __init__(self, transaction_id: str) -> None:
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class EnrichmentError(LedgerError):
    """Base class for failures talking to the reasoning agent."""


class TransportError(EnrichmentError):
    """The agent call failed: network error, timeout or non-success status."""


class ParseError(EnrichmentError):
    """The agent response held no usable structured object."""
