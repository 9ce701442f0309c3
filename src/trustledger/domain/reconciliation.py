"""Reconciliation domain service.

Compares the book balance of a trust account (the sum of its client ledger
balances) against a bank balance for a period. Reconciliation never changes a
ledger; it only stores a draft record for human review.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from trustledger.domain import errors
from trustledger.domain.balance import ZERO, signed_amount, to_cents
from trustledger.domain.entities import (
    BankStatement,
    Reconciliation,
    ReconciliationResult,
    ReconciliationStatus,
)
from trustledger.domain.validator import parse_money
from trustledger.utils.date_parser import end_of_day

if TYPE_CHECKING:
    from trustledger.database.base import Database

logger = logging.getLogger(__name__)


def _check_period(period_start: date, period_end: date) -> None:
    if period_start > period_end:
        raise errors.ValidationError(
            f"Period start {period_start} is after period end {period_end}"
        )


class ReconciliationService:
    """Service for bank statements and trust account reconciliation."""

    def __init__(self, db: "Database"):
        """Initialize reconciliation service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_account(self, trust_account_id: int):
        account = self.db.get_trust_account(trust_account_id)
        if account is None:
            raise errors.NotFoundError(errors.trust_account_not_found(trust_account_id))
        return account

    def book_balance(self, trust_account_id: int, period_end: date) -> tuple[Decimal, list]:
        """Compute the book balance of a trust account at the end of a period.

        Each ledger contributes the ``balance_after`` of its last transaction
        up to the end of ``period_end``. Transactions still pending at that
        point have not reached the bank, so their effect is taken back out.

        Returns:
            Tuple of (book balance, excluded pending transactions)
        """
        as_of = end_of_day(period_end)
        total = ZERO
        for ledger in self.db.list_client_ledgers(trust_account_id):
            total += self.db.get_balance_as_of(ledger.id, as_of) or ZERO

        pending = self.db.list_pending_transactions(trust_account_id, created_until=as_of)
        for txn in pending:
            total -= signed_amount(txn.transaction_type, txn.amount)

        return to_cents(total), pending

    def reconcile(
        self,
        trust_account_id: int,
        period_start: date,
        period_end: date,
        bank_balance: Any,
        reconciled_by: Optional[str] = None,
        bank_statement_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> ReconciliationResult:
        """Reconcile a trust account against a bank balance.

        Args:
            trust_account_id: Trust account to reconcile
            period_start: First day of the statement period
            period_end: Last day of the statement period
            bank_balance: Balance shown by the bank at period end
            reconciled_by: Who ran the reconciliation
            bank_statement_id: Optional stored statement this run is based on
            notes: Optional notes

        Returns:
            ReconciliationResult with the stored draft reconciliation

        Raises:
            NotFoundError: If the trust account doesn't exist
            ValidationError: If the period is inverted or the balance malformed
        """
        account = self._require_account(trust_account_id)
        _check_period(period_start, period_end)
        bank_balance = parse_money(bank_balance)

        book_balance, pending = self.book_balance(trust_account_id, period_end)
        difference = to_cents(bank_balance - book_balance)
        is_balanced = difference == 0

        reconciliation_id = self.db.create_reconciliation(
            trust_account_id=trust_account_id,
            reconciliation_date=date.today(),
            period_start=period_start,
            period_end=period_end,
            bank_balance=bank_balance,
            book_balance=book_balance,
            difference=difference,
            is_balanced=is_balanced,
            is_provisional=bool(pending),
            pending_count=len(pending),
            reconciled_by=reconciled_by,
            bank_statement_id=bank_statement_id,
            notes=notes,
        )

        if is_balanced:
            logger.info(
                "Trust account %s balanced at %s for %s..%s",
                trust_account_id,
                book_balance,
                period_start,
                period_end,
            )
        else:
            logger.warning(
                "Trust account %s out of balance by %s (bank %s, book %s)",
                trust_account_id,
                difference,
                bank_balance,
                book_balance,
            )

        ledger_total = sum(
            (ledger.current_balance for ledger in self.db.list_client_ledgers(trust_account_id)),
            ZERO,
        )
        return ReconciliationResult(
            reconciliation=self.db.get_reconciliation(reconciliation_id),
            ledger_total=ledger_total,
            account_balance=account.balance,
            excluded_pending=pending,
        )

    def record_bank_statement(
        self,
        trust_account_id: int,
        statement_date: date,
        period_start: date,
        period_end: date,
        starting_balance: Any,
        ending_balance: Any,
    ) -> int:
        """Store the figures of a bank statement.

        Returns:
            Bank statement ID

        Raises:
            NotFoundError: If the trust account doesn't exist
            ValidationError: If the period is inverted or a balance malformed
        """
        self._require_account(trust_account_id)
        _check_period(period_start, period_end)
        return self.db.create_bank_statement(
            trust_account_id=trust_account_id,
            statement_date=statement_date,
            period_start=period_start,
            period_end=period_end,
            starting_balance=parse_money(starting_balance),
            ending_balance=parse_money(ending_balance),
        )

    def get_bank_statement(self, statement_id: int) -> Optional[BankStatement]:
        """Get bank statement by ID."""
        return self.db.get_bank_statement(statement_id)

    def list_bank_statements(self, trust_account_id: int) -> list[BankStatement]:
        """List bank statements of a trust account, newest first."""
        self._require_account(trust_account_id)
        return self.db.list_bank_statements(trust_account_id)

    def reconcile_statement(
        self,
        statement_id: int,
        reconciled_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ReconciliationResult:
        """Reconcile a trust account against a stored bank statement.

        Raises:
            NotFoundError: If the statement doesn't exist
        """
        statement = self.db.get_bank_statement(statement_id)
        if statement is None:
            raise errors.NotFoundError(errors.bank_statement_not_found(statement_id))
        return self.reconcile(
            trust_account_id=statement.trust_account_id,
            period_start=statement.period_start,
            period_end=statement.period_end,
            bank_balance=statement.ending_balance,
            reconciled_by=reconciled_by,
            bank_statement_id=statement.id,
            notes=notes,
        )

    def get_reconciliation(self, reconciliation_id: int) -> Optional[Reconciliation]:
        """Get reconciliation by ID."""
        return self.db.get_reconciliation(reconciliation_id)

    def list_reconciliations(self, trust_account_id: int) -> list[Reconciliation]:
        """List reconciliations of a trust account, newest first."""
        self._require_account(trust_account_id)
        return self.db.list_reconciliations(trust_account_id)

    def review_reconciliation(
        self, reconciliation_id: int, reviewed_by: Optional[str] = None
    ) -> Reconciliation:
        """Mark a draft reconciliation as reviewed. Reviewed records are read-only.

        Raises:
            NotFoundError: If the reconciliation doesn't exist
            ConflictError: If it has already been reviewed
        """
        rec = self.db.get_reconciliation(reconciliation_id)
        if rec is None:
            raise errors.NotFoundError(errors.reconciliation_not_found(reconciliation_id))
        if rec.status == ReconciliationStatus.REVIEWED:
            raise errors.ConflictError(f"Reconciliation {reconciliation_id} is already reviewed")

        reviewed = self.db.mark_reconciliation_reviewed(reconciliation_id, reviewed_by)
        if reviewed is None:
            raise errors.ConflictError(f"Reconciliation {reconciliation_id} is already reviewed")
        logger.info("Reconciliation %s reviewed by %s", reconciliation_id, reviewed_by)
        return reviewed
