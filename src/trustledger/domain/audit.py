"""Ledger audit by replay.

Replays each ledger's stored history from zero and reports every place where
the stored figures disagree with the replay. The audit only reads: history is
append-only, so any gap it finds is corrected with an offsetting transaction,
never by rewriting stored rows.
"""

import logging
from typing import TYPE_CHECKING

from trustledger.domain import errors
from trustledger.domain.balance import ZERO, replay_balances
from trustledger.domain.entities import AuditFinding
from trustledger.domain.transaction import TransactionHistory

if TYPE_CHECKING:
    from trustledger.database.base import Database

logger = logging.getLogger(__name__)


class AuditService:
    """Service for checking stored balances against the transaction log."""

    def __init__(self, db: "Database"):
        self.db = db

    def audit_ledger(self, client_ledger_id: int) -> list[AuditFinding]:
        """Replay one ledger and return every mismatch found.

        Raises:
            NotFoundError: If the ledger doesn't exist
        """
        ledger = self.db.get_client_ledger(client_ledger_id)
        if ledger is None:
            raise errors.NotFoundError(errors.client_ledger_not_found(client_ledger_id))

        findings = []
        replayed = ZERO
        for txn, expected in replay_balances(TransactionHistory(self.db, client_ledger_id)):
            replayed = expected
            if txn.balance_after != expected:
                findings.append(
                    AuditFinding(
                        client_ledger_id=client_ledger_id,
                        transaction_id=txn.id,
                        expected=expected,
                        actual=txn.balance_after,
                        message=(
                            f"Transaction {txn.id} records balance_after {txn.balance_after}, "
                            f"replay gives {expected}"
                        ),
                    )
                )

        if ledger.current_balance != replayed:
            findings.append(
                AuditFinding(
                    client_ledger_id=client_ledger_id,
                    transaction_id=None,
                    expected=replayed,
                    actual=ledger.current_balance,
                    message=(
                        f"Client ledger {client_ledger_id} balance is {ledger.current_balance}, "
                        f"replay gives {replayed}"
                    ),
                )
            )

        if findings:
            logger.warning("Ledger %s audit found %d mismatch(es)", client_ledger_id, len(findings))
        return findings

    def audit_trust_account(self, trust_account_id: int) -> list[AuditFinding]:
        """Audit every ledger of a trust account and its aggregate balance.

        Raises:
            NotFoundError: If the trust account doesn't exist
        """
        account = self.db.get_trust_account(trust_account_id)
        if account is None:
            raise errors.NotFoundError(errors.trust_account_not_found(trust_account_id))

        findings = []
        ledger_total = ZERO
        for ledger in self.db.list_client_ledgers(trust_account_id):
            findings.extend(self.audit_ledger(ledger.id))
            ledger_total += ledger.current_balance

        if account.balance != ledger_total:
            findings.append(
                AuditFinding(
                    client_ledger_id=None,
                    transaction_id=None,
                    expected=ledger_total,
                    actual=account.balance,
                    message=(
                        f"Trust account {trust_account_id} balance is {account.balance}, "
                        f"client ledgers sum to {ledger_total}"
                    ),
                )
            )
        return findings
