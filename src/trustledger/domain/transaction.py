"""Transaction domain service.

Every change to a client ledger balance goes through
``TransactionService.apply``: a fresh read, a re-validation, the balance
calculation and a single versioned write that appends the transaction and
moves the balance together.
"""

import logging
import time
from datetime import date
from typing import TYPE_CHECKING, Iterator, Optional

from trustledger.domain import errors
from trustledger.domain.balance import ZERO, compute_new_balance, signed_amount
from trustledger.domain.entities import (
    LedgerBalance,
    LedgerStatement,
    Transaction as TransactionEntity,
    TransactionRequest,
    ValidatedTransaction,
)
from trustledger.domain.validator import TransactionValidator
from trustledger.utils.date_parser import end_of_day, start_of_day

if TYPE_CHECKING:
    from trustledger.database.base import Database

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 0.05


class TransactionHistory:
    """Lazy, restartable view of a client ledger's transactions.

    Iterating pages through the database in insertion order; each new
    iteration starts again from the first transaction.
    """

    def __init__(
        self,
        db: "Database",
        client_ledger_id: Optional[int],
        start: Optional[date] = None,
        end: Optional[date] = None,
        page_size: int = 100,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.db = db
        self.client_ledger_id = client_ledger_id
        self.start = start
        self.end = end
        self.page_size = page_size

    def __iter__(self) -> Iterator[TransactionEntity]:
        after_id = None
        while True:
            page = self._fetch_page(after_id)
            yield from page
            if len(page) < self.page_size:
                return
            after_id = page[-1].id

    def _fetch_page(self, after_id: Optional[int]) -> list[TransactionEntity]:
        return self.db.list_transactions(
            self.client_ledger_id,
            after_id=after_id,
            limit=self.page_size,
            start=start_of_day(self.start) if self.start else None,
            end=end_of_day(self.end) if self.end else None,
        )

    def __repr__(self) -> str:
        return f"TransactionHistory(client_ledger_id={self.client_ledger_id})"


class AccountTransactionHistory(TransactionHistory):
    """Lazy view of the transactions of every ledger in a trust account."""

    def __init__(
        self,
        db: "Database",
        trust_account_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        page_size: int = 100,
    ):
        super().__init__(db, None, start=start, end=end, page_size=page_size)
        self.trust_account_id = trust_account_id

    def _fetch_page(self, after_id: Optional[int]) -> list[TransactionEntity]:
        return self.db.list_account_transactions(
            self.trust_account_id,
            after_id=after_id,
            limit=self.page_size,
            start=start_of_day(self.start) if self.start else None,
            end=end_of_day(self.end) if self.end else None,
        )

    def __repr__(self) -> str:
        return f"AccountTransactionHistory(trust_account_id={self.trust_account_id})"


class TransactionService:
    """Service for submitting and reading ledger transactions."""

    def __init__(
        self,
        db: "Database",
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            max_retries: Retries after a concurrent modification before giving up
            retry_backoff: Base delay in seconds, doubled after each retry
        """
        self.db = db
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.validator = TransactionValidator()

    def validate_request(self, request: TransactionRequest) -> ValidatedTransaction:
        """Validate a request against the current account and ledger state."""
        trust_account = self.db.get_trust_account(request.trust_account_id)
        ledger = self.db.get_client_ledger(request.client_ledger_id)
        return self.validator.validate(request, trust_account, ledger)

    def submit_transaction(self, request: TransactionRequest) -> TransactionEntity:
        """Validate and apply a transaction request.

        Concurrent modifications are retried with exponential backoff up to
        ``max_retries`` times. Validation failures are never retried.

        Args:
            request: Transaction request from the caller

        Returns:
            The stored transaction, including ``balance_after``

        Raises:
            ValidationError: Invalid amount or type, or insufficient funds
            NotFoundError: Account or ledger missing
            AccountClosedError: Account or ledger closed
            ConcurrentModificationError: Retries exhausted
            PersistenceError: The write failed
        """
        try:
            validated = self.validate_request(request)
        except errors.DomainError as e:
            logger.info(
                "Rejected %s on ledger %s: %s", request.transaction_type, request.client_ledger_id, e
            )
            raise

        attempt = 0
        while True:
            try:
                return self.apply(validated)
            except errors.ConcurrentModificationError:
                if attempt >= self.max_retries:
                    logger.warning(
                        "Giving up on ledger %s after %d retries",
                        validated.client_ledger_id,
                        attempt,
                    )
                    raise
                delay = self.retry_backoff * (2 ** attempt)
                attempt += 1
                logger.debug(
                    "Ledger %s modified concurrently, retry %d in %.3fs",
                    validated.client_ledger_id,
                    attempt,
                    delay,
                )
                time.sleep(delay)

    def apply(self, validated: ValidatedTransaction) -> TransactionEntity:
        """Apply a validated transaction as one atomic unit of work.

        Raises:
            ConcurrentModificationError: The ledger changed after it was read
            PersistenceError: The write failed
        """
        trust_account = self.db.get_trust_account(validated.trust_account_id)
        ledger = self.db.get_client_ledger(validated.client_ledger_id)
        self.validator.revalidate(validated, trust_account, ledger)

        balance_after = compute_new_balance(
            ledger.current_balance, validated.transaction_type, validated.amount
        )
        try:
            txn = self.db.record_transaction(
                trust_account_id=validated.trust_account_id,
                client_ledger_id=validated.client_ledger_id,
                expected_version=ledger.version,
                transaction_type=validated.transaction_type,
                amount=validated.amount,
                balance_after=balance_after,
                balance_delta=signed_amount(validated.transaction_type, validated.amount),
                status=validated.status,
                description=validated.description,
                reference_number=validated.reference_number,
                created_by=validated.created_by,
            )
        except errors.PersistenceError:
            logger.error(
                "Failed to record %s of %s on ledger %s",
                validated.transaction_type.value,
                validated.amount,
                validated.client_ledger_id,
            )
            raise

        logger.info(
            "Applied %s %s on ledger %s, balance %s -> %s",
            txn.transaction_type.value,
            txn.amount,
            txn.client_ledger_id,
            ledger.current_balance,
            txn.balance_after,
        )
        return txn

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID."""
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        client_ledger_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page_size: int = 100,
    ) -> TransactionHistory:
        """List a ledger's transactions, oldest first.

        Raises:
            NotFoundError: If the ledger doesn't exist
        """
        if self.db.get_client_ledger(client_ledger_id) is None:
            raise errors.NotFoundError(errors.client_ledger_not_found(client_ledger_id))
        return TransactionHistory(
            self.db, client_ledger_id, start=start_date, end=end_date, page_size=page_size
        )

    def list_account_transactions(
        self,
        trust_account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page_size: int = 100,
    ) -> AccountTransactionHistory:
        """List transactions of every ledger in a trust account, oldest first.

        Raises:
            NotFoundError: If the trust account doesn't exist
        """
        if self.db.get_trust_account(trust_account_id) is None:
            raise errors.NotFoundError(errors.trust_account_not_found(trust_account_id))
        return AccountTransactionHistory(
            self.db, trust_account_id, start=start_date, end=end_date, page_size=page_size
        )

    def complete_transaction(self, transaction_id: int) -> TransactionEntity:
        """Mark a pending transaction as completed (cleared by the bank).

        Only the status changes; amount and balance_after are untouched.

        Raises:
            NotFoundError: If the transaction doesn't exist
            ConflictError: If the transaction is not pending
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise errors.NotFoundError(errors.transaction_not_found(transaction_id))

        updated = self.db.mark_transaction_completed(transaction_id)
        if updated is None:
            raise errors.ConflictError(f"Transaction {transaction_id} is already {txn.status.value}")
        logger.info("Completed pending transaction %s", transaction_id)
        return updated

    def get_ledger_balance(self, client_ledger_id: int) -> LedgerBalance:
        """Get current, pending and available balance of a ledger.

        Pending deposits are already in the current balance but are not yet
        available to disburse.

        Raises:
            NotFoundError: If the ledger doesn't exist
        """
        ledger = self.db.get_client_ledger(client_ledger_id)
        if ledger is None:
            raise errors.NotFoundError(errors.client_ledger_not_found(client_ledger_id))

        pending = ZERO
        uncleared_credits = ZERO
        for txn in self.db.list_pending_transactions(ledger.trust_account_id):
            if txn.client_ledger_id != client_ledger_id:
                continue
            pending += signed_amount(txn.transaction_type, txn.amount)
            if txn.transaction_type.is_credit:
                uncleared_credits += txn.amount

        available = ledger.current_balance - uncleared_credits
        return LedgerBalance(
            client_ledger_id=client_ledger_id,
            current_balance=ledger.current_balance,
            pending_balance=pending,
            available_balance=available,
        )

    def get_ledger_statement(
        self,
        client_ledger_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> LedgerStatement:
        """Build a ledger statement for a date range.

        The opening balance is the ledger balance before ``start_date`` and
        the closing balance the balance at the end of ``end_date``.

        Raises:
            NotFoundError: If the ledger doesn't exist
            ValidationError: If start_date is after end_date
        """
        ledger = self.db.get_client_ledger(client_ledger_id)
        if ledger is None:
            raise errors.NotFoundError(errors.client_ledger_not_found(client_ledger_id))
        if start_date and end_date and start_date > end_date:
            raise errors.ValidationError("Start date must not be after end date")

        opening = ZERO
        if start_date is not None:
            opening = self.db.get_balance_as_of(
                client_ledger_id, start_of_day(start_date), inclusive=False
            ) or ZERO

        transactions = list(
            TransactionHistory(self.db, client_ledger_id, start=start_date, end=end_date)
        )

        if end_date is None:
            closing = ledger.current_balance
        else:
            closing = self.db.get_balance_as_of(client_ledger_id, end_of_day(end_date)) or ZERO

        return LedgerStatement(
            ledger=ledger,
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
            closing_balance=closing,
            transactions=transactions,
        )
