"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. Each class carries a stable
    ``code`` that API callers can map to a response.
    """

    code = "domain_error"


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    code = "validation_error"


class InvalidAmountError(ValidationError):
    """Amount is not a positive decimal with cent precision."""

    code = "invalid_amount"


class InvalidTypeError(ValidationError):
    """Transaction type is not one of the supported kinds."""

    code = "invalid_type"


class InsufficientFundsError(ValidationError):
    """Withdrawal or fee would take a client ledger below zero."""

    code = "insufficient_funds"


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    code = "not_found"


class AccountClosedError(DomainError):
    """Trust account or client ledger is closed."""

    code = "account_closed"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""

    code = "conflict"


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""

    code = "dependency"


class ConcurrentModificationError(DomainError):
    """Another writer changed the ledger between read and write.

    The caller may retry; nothing was written.
    """

    code = "concurrent_modification"


class PersistenceError(DomainError):
    """The database failed to store a change. Nothing was written."""

    code = "persistence_error"


def trust_account_not_found(trust_account_id: int) -> str:
    """Return message for missing trust account."""
    return f"Trust account {trust_account_id} not found"


def client_ledger_not_found(client_ledger_id: int) -> str:
    """Return message for missing client ledger."""
    return f"Client ledger {client_ledger_id} not found"


def ledger_not_in_account(client_ledger_id: int, trust_account_id: int) -> str:
    """Return message for a ledger that belongs to another trust account."""
    return f"Client ledger {client_ledger_id} not found in trust account {trust_account_id}"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def reconciliation_not_found(reconciliation_id: int) -> str:
    """Return message for missing reconciliation."""
    return f"Reconciliation {reconciliation_id} not found"


def bank_statement_not_found(statement_id: int) -> str:
    """Return message for missing bank statement."""
    return f"Bank statement {statement_id} not found"


def trust_account_closed(trust_account_id: int) -> str:
    """Return message for a closed trust account."""
    return f"Trust account {trust_account_id} is closed"


def client_ledger_closed(client_ledger_id: int) -> str:
    """Return message for a closed client ledger."""
    return f"Client ledger {client_ledger_id} is closed"


def insufficient_funds(client_ledger_id: int, balance: Decimal, amount: Decimal) -> str:
    """Return message when a debit exceeds the ledger balance."""
    return (
        f"Insufficient funds in client ledger {client_ledger_id}: "
        f"balance {balance:.2f}, requested {amount:.2f}"
    )


def concurrent_modification(client_ledger_id: int) -> str:
    """Return message when a ledger changed under a writer."""
    return f"Client ledger {client_ledger_id} was modified concurrently; retry the transaction"


def duplicate_client_ledger(trust_account_id: int, client_id: str, matter_id: str | None) -> str:
    """Return message for a client/matter that already has a ledger."""
    matter = f", matter '{matter_id}'" if matter_id else ""
    return f"Trust account {trust_account_id} already has a ledger for client '{client_id}'{matter}"


def ledger_close_blocked(client_ledger_id: int, balance: Decimal) -> str:
    """Return message when a ledger still holds funds."""
    return (
        f"Cannot close client ledger {client_ledger_id}: it still holds {balance:.2f}. "
        "Disburse the remaining funds first."
    )


def account_close_blocked(trust_account_id: int, funded_count: int) -> str:
    """Return message when a trust account still has funded ledgers."""
    return (
        f"Cannot close trust account {trust_account_id}: "
        f"{funded_count} client ledger{'s' if funded_count != 1 else ''} still hold funds."
    )
