"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from trustledger.domain.entities import (
    BankStatement,
    ClientLedger,
    Reconciliation,
    Transaction,
    TransactionStatus,
    TransactionType,
    TrustAccount,
)


class Database(ABC):
    """Abstract persistence interface for the trust ledger.

    Client ledger balances are only ever changed through
    ``record_transaction``; there is no other balance write.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Trust account operations
    @abstractmethod
    def create_trust_account(
        self,
        merchant_id: int,
        name: str,
        bank_name: Optional[str] = None,
        account_number: Optional[str] = None,
    ) -> int:
        """Create a trust account with a zero balance. Returns account ID."""
        pass

    @abstractmethod
    def get_trust_account(self, trust_account_id: int) -> Optional[TrustAccount]:
        """Get trust account by ID."""
        pass

    @abstractmethod
    def list_trust_accounts(self, merchant_id: Optional[int] = None) -> list[TrustAccount]:
        """List trust accounts, optionally filtered by merchant."""
        pass

    @abstractmethod
    def close_trust_account(
        self, trust_account_id: int, ledger_versions: dict[int, int]
    ) -> TrustAccount:
        """Close a trust account and its ledgers in one commit.

        Args:
            trust_account_id: Trust account to close
            ledger_versions: Expected version of every active ledger to close

        Raises:
            NotFoundError: If the account or a ledger doesn't exist
            DependencyError: If a ledger still holds funds
            ConcurrentModificationError: If a ledger changed since it was read
        """
        pass

    # Client ledger operations
    @abstractmethod
    def create_client_ledger(
        self,
        trust_account_id: int,
        client_id: str,
        matter_id: Optional[str] = None,
        client_name: Optional[str] = None,
    ) -> int:
        """Create a client ledger with a zero balance. Returns ledger ID."""
        pass

    @abstractmethod
    def get_client_ledger(self, client_ledger_id: int) -> Optional[ClientLedger]:
        """Get client ledger by ID, always reading current committed state."""
        pass

    @abstractmethod
    def find_client_ledger(
        self, trust_account_id: int, client_id: str, matter_id: Optional[str] = None
    ) -> Optional[ClientLedger]:
        """Find the ledger for a client/matter within a trust account."""
        pass

    @abstractmethod
    def list_client_ledgers(self, trust_account_id: int) -> list[ClientLedger]:
        """List client ledgers of a trust account."""
        pass

    @abstractmethod
    def list_client_ledgers_by_merchant(self, merchant_id: int) -> list[ClientLedger]:
        """List client ledgers across all trust accounts of a merchant."""
        pass

    @abstractmethod
    def close_client_ledger(self, client_ledger_id: int, expected_version: int) -> ClientLedger:
        """Close an empty client ledger and bump its version.

        The write only matches an active ledger at ``expected_version`` with a
        zero balance, so a transaction read against the old version fails its
        own version check.

        Raises:
            NotFoundError: The ledger does not exist
            DependencyError: The ledger holds funds
            ConcurrentModificationError: The ledger changed after it was read
        """
        pass

    # Transaction operations
    @abstractmethod
    def record_transaction(
        self,
        trust_account_id: int,
        client_ledger_id: int,
        expected_version: int,
        transaction_type: TransactionType,
        amount: Decimal,
        balance_after: Decimal,
        balance_delta: Decimal,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        description: Optional[str] = None,
        reference_number: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Transaction:
        """Atomically append a transaction and move the ledger balance.

        In a single database transaction: set the ledger's balance to
        ``balance_after`` if its version still equals ``expected_version``,
        add ``balance_delta`` to the trust account aggregate balance, and
        insert the transaction row. Either all of it commits or none of it.

        Raises:
            ConcurrentModificationError: The ledger version moved or a lock
                could not be acquired in time
            PersistenceError: Any other database failure
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        client_ledger_id: int,
        after_id: Optional[int] = None,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """List a ledger's transactions in insertion order.

        Args:
            client_ledger_id: Ledger to list
            after_id: Only return transactions with a greater ID (keyset paging)
            limit: Maximum number of rows
            start: Optional inclusive lower bound on created_at
            end: Optional inclusive upper bound on created_at
        """
        pass

    @abstractmethod
    def list_account_transactions(
        self,
        trust_account_id: int,
        after_id: Optional[int] = None,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """List transactions of every ledger in a trust account in insertion order."""
        pass

    @abstractmethod
    def list_pending_transactions(
        self, trust_account_id: int, created_until: Optional[datetime] = None
    ) -> list[Transaction]:
        """List pending transactions of a trust account, oldest first."""
        pass

    @abstractmethod
    def mark_transaction_completed(self, transaction_id: int) -> Optional[Transaction]:
        """Move a pending transaction to completed.

        Returns the updated transaction, or None if it was not pending.
        """
        pass

    @abstractmethod
    def get_balance_as_of(
        self, client_ledger_id: int, as_of: datetime, inclusive: bool = True
    ) -> Optional[Decimal]:
        """Return ``balance_after`` of the ledger's last transaction up to ``as_of``.

        Returns None when the ledger has no transaction in that range.
        """
        pass

    # Bank statement operations
    @abstractmethod
    def create_bank_statement(
        self,
        trust_account_id: int,
        statement_date: date,
        period_start: date,
        period_end: date,
        starting_balance: Decimal,
        ending_balance: Decimal,
    ) -> int:
        """Store bank statement figures. Returns statement ID."""
        pass

    @abstractmethod
    def get_bank_statement(self, statement_id: int) -> Optional[BankStatement]:
        """Get bank statement by ID."""
        pass

    @abstractmethod
    def list_bank_statements(self, trust_account_id: int) -> list[BankStatement]:
        """List bank statements of a trust account, newest first."""
        pass

    # Reconciliation operations
    @abstractmethod
    def create_reconciliation(
        self,
        trust_account_id: int,
        reconciliation_date: date,
        period_start: date,
        period_end: date,
        bank_balance: Decimal,
        book_balance: Decimal,
        difference: Decimal,
        is_balanced: bool,
        is_provisional: bool = False,
        pending_count: int = 0,
        reconciled_by: Optional[str] = None,
        bank_statement_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Store a draft reconciliation. Returns reconciliation ID."""
        pass

    @abstractmethod
    def get_reconciliation(self, reconciliation_id: int) -> Optional[Reconciliation]:
        """Get reconciliation by ID."""
        pass

    @abstractmethod
    def list_reconciliations(self, trust_account_id: int) -> list[Reconciliation]:
        """List reconciliations of a trust account, newest first."""
        pass

    @abstractmethod
    def mark_reconciliation_reviewed(
        self, reconciliation_id: int, reviewed_by: Optional[str]
    ) -> Optional[Reconciliation]:
        """Move a draft reconciliation to reviewed.

        Returns the updated record, or None if it was not a draft.
        """
        pass
