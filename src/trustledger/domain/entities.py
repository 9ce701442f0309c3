"""Domain model entities for trustledger.

These are pure data classes representing trust-accounting concepts,
independent of database schema. Balances and amounts are always Decimal.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class TransactionType(str, Enum):
    """Kinds of balance-affecting events on a client ledger."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INTEREST = "interest"
    FEE = "fee"

    @property
    def is_credit(self) -> bool:
        """True for types that add to the ledger balance."""
        return self in (TransactionType.DEPOSIT, TransactionType.INTEREST)


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class ReconciliationStatus(str, Enum):
    DRAFT = "draft"
    REVIEWED = "reviewed"


@dataclass(frozen=True)
class TrustAccount:
    """Pooled IOLTA bank account held by a merchant (law firm)."""

    id: int
    merchant_id: int
    name: str
    bank_name: Optional[str]
    account_number: Optional[str]
    status: AccountStatus
    balance: Decimal
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


@dataclass(frozen=True)
class ClientLedger:
    """Sub-balance of a trust account for one client or matter."""

    id: int
    trust_account_id: int
    client_id: str
    matter_id: Optional[str]
    client_name: Optional[str]
    current_balance: Decimal
    status: AccountStatus
    version: int
    last_transaction_at: Optional[datetime]
    created_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


@dataclass(frozen=True)
class Transaction:
    """Immutable record of one balance-affecting event."""

    id: int
    trust_account_id: int
    client_ledger_id: int
    transaction_type: TransactionType
    amount: Decimal
    balance_after: Decimal
    description: Optional[str]
    reference_number: Optional[str]
    status: TransactionStatus
    created_by: Optional[str]
    created_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING


@dataclass(frozen=True)
class BankStatement:
    """Bank statement figures for one trust account period."""

    id: int
    trust_account_id: int
    statement_date: date
    period_start: date
    period_end: date
    starting_balance: Decimal
    ending_balance: Decimal
    created_at: datetime


@dataclass(frozen=True)
class Reconciliation:
    """Stored comparison of book balance against a bank balance."""

    id: int
    trust_account_id: int
    reconciliation_date: date
    period_start: date
    period_end: date
    bank_balance: Decimal
    book_balance: Decimal
    difference: Decimal
    is_balanced: bool
    is_provisional: bool
    pending_count: int
    status: ReconciliationStatus
    reconciled_by: Optional[str]
    reviewed_by: Optional[str]
    reviewed_at: Optional[datetime]
    bank_statement_id: Optional[int]
    notes: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class TransactionRequest:
    """Unvalidated transaction submission from a caller.

    ``transaction_type`` and ``amount`` are kept loose (strings are accepted)
    because they arrive straight from the route layer or the CLI.
    """

    trust_account_id: int
    client_ledger_id: int
    transaction_type: Any
    amount: Any
    description: Optional[str] = None
    reference_number: Optional[str] = None
    created_by: Optional[str] = None
    pending: bool = False


@dataclass(frozen=True)
class ValidatedTransaction:
    """Transaction request that passed validation."""

    trust_account_id: int
    client_ledger_id: int
    transaction_type: TransactionType
    amount: Decimal
    description: Optional[str] = None
    reference_number: Optional[str] = None
    created_by: Optional[str] = None
    status: TransactionStatus = TransactionStatus.COMPLETED


@dataclass(frozen=True)
class LedgerBalance:
    """Current, pending and available balance of a client ledger."""

    client_ledger_id: int
    current_balance: Decimal
    pending_balance: Decimal
    available_balance: Decimal


@dataclass(frozen=True)
class LedgerStatement:
    """Client ledger activity for a date range."""

    ledger: ClientLedger
    start_date: Optional[date]
    end_date: Optional[date]
    opening_balance: Decimal
    closing_balance: Decimal
    transactions: list[Transaction] = field(default_factory=list)


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of a reconciliation run."""

    reconciliation: Reconciliation
    ledger_total: Decimal
    account_balance: Decimal
    excluded_pending: list[Transaction] = field(default_factory=list)

    @property
    def is_balanced(self) -> bool:
        return self.reconciliation.is_balanced

    @property
    def difference(self) -> Decimal:
        return self.reconciliation.difference


@dataclass(frozen=True)
class AuditFinding:
    """One mismatch between stored and replayed balances."""

    client_ledger_id: Optional[int]
    transaction_id: Optional[int]
    expected: Decimal
    actual: Decimal
    message: str
