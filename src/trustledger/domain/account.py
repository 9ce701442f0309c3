"""Trust account and client ledger domain service."""

import logging
from typing import TYPE_CHECKING, Optional

from trustledger.domain import errors
from trustledger.domain.entities import (
    ClientLedger as ClientLedgerEntity,
    TrustAccount as TrustAccountEntity,
)

if TYPE_CHECKING:
    from trustledger.database.base import Database

logger = logging.getLogger(__name__)


class AccountService:
    """Service for opening and closing trust accounts and client ledgers.

    Balances are never written here; they only move through
    ``TransactionService``.
    """

    def __init__(self, db: "Database"):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_trust_account(
        self,
        merchant_id: int,
        name: str,
        bank_name: Optional[str] = None,
        account_number: Optional[str] = None,
    ) -> int:
        """Create a new trust account.

        Args:
            merchant_id: Owning merchant (law firm)
            name: Account name, unique per merchant
            bank_name: Optional bank name
            account_number: Optional bank account number

        Returns:
            Trust account ID

        Raises:
            ConflictError: If the merchant already has an account with that name
        """
        for acc in self.db.list_trust_accounts(merchant_id=merchant_id):
            if acc.name == name:
                raise errors.ConflictError(
                    f"Merchant {merchant_id} already has a trust account named '{name}'"
                )

        account_id = self.db.create_trust_account(
            merchant_id=merchant_id,
            name=name,
            bank_name=bank_name,
            account_number=account_number,
        )
        logger.info("Created trust account %s for merchant %s", account_id, merchant_id)
        return account_id

    def get_trust_account(self, trust_account_id: int) -> Optional[TrustAccountEntity]:
        """Get trust account by ID."""
        return self.db.get_trust_account(trust_account_id)

    def require_trust_account(self, trust_account_id: int) -> TrustAccountEntity:
        """Get trust account by ID or raise NotFoundError."""
        account = self.db.get_trust_account(trust_account_id)
        if account is None:
            raise errors.NotFoundError(errors.trust_account_not_found(trust_account_id))
        return account

    def list_trust_accounts(self, merchant_id: Optional[int] = None) -> list[TrustAccountEntity]:
        """List trust accounts, optionally for one merchant."""
        return self.db.list_trust_accounts(merchant_id=merchant_id)

    def close_trust_account(self, trust_account_id: int) -> TrustAccountEntity:
        """Close a trust account together with all of its client ledgers.

        Every active ledger is closed at the version read here, in the same
        commit as the account. A transaction landing in between makes the
        whole close fail instead of leaving funds in a closed ledger.

        Raises:
            NotFoundError: If the account doesn't exist
            AccountClosedError: If the account is already closed
            DependencyError: If any client ledger still holds funds
            ConcurrentModificationError: If a ledger changed during the close
        """
        account = self.require_trust_account(trust_account_id)
        if not account.is_active:
            raise errors.AccountClosedError(errors.trust_account_closed(trust_account_id))

        ledgers = self.db.list_client_ledgers(trust_account_id)
        funded = [ledger for ledger in ledgers if ledger.current_balance != 0]
        if funded:
            raise errors.DependencyError(errors.account_close_blocked(trust_account_id, len(funded)))

        versions = {ledger.id: ledger.version for ledger in ledgers if ledger.is_active}
        closed = self.db.close_trust_account(trust_account_id, versions)
        logger.info("Closed trust account %s and %d ledgers", trust_account_id, len(versions))
        return closed

    def open_client_ledger(
        self,
        trust_account_id: int,
        client_id: str,
        matter_id: Optional[str] = None,
        client_name: Optional[str] = None,
    ) -> int:
        """Open a client ledger with a zero balance.

        Args:
            trust_account_id: Owning trust account
            client_id: Client identifier
            matter_id: Optional matter identifier
            client_name: Optional display name

        Returns:
            Client ledger ID

        Raises:
            NotFoundError: If the trust account doesn't exist
            AccountClosedError: If the trust account is closed
            ConflictError: If the client/matter already has a ledger
        """
        account = self.require_trust_account(trust_account_id)
        if not account.is_active:
            raise errors.AccountClosedError(errors.trust_account_closed(trust_account_id))

        if self.db.find_client_ledger(trust_account_id, client_id, matter_id) is not None:
            raise errors.ConflictError(
                errors.duplicate_client_ledger(trust_account_id, client_id, matter_id)
            )

        ledger_id = self.db.create_client_ledger(
            trust_account_id=trust_account_id,
            client_id=client_id,
            matter_id=matter_id,
            client_name=client_name,
        )
        logger.info("Opened client ledger %s in trust account %s", ledger_id, trust_account_id)
        return ledger_id

    def get_client_ledger(self, client_ledger_id: int) -> Optional[ClientLedgerEntity]:
        """Get client ledger by ID."""
        return self.db.get_client_ledger(client_ledger_id)

    def require_client_ledger(self, client_ledger_id: int) -> ClientLedgerEntity:
        """Get client ledger by ID or raise NotFoundError."""
        ledger = self.db.get_client_ledger(client_ledger_id)
        if ledger is None:
            raise errors.NotFoundError(errors.client_ledger_not_found(client_ledger_id))
        return ledger

    def list_client_ledgers(self, trust_account_id: int) -> list[ClientLedgerEntity]:
        """List client ledgers of a trust account.

        Raises:
            NotFoundError: If the trust account doesn't exist
        """
        self.require_trust_account(trust_account_id)
        return self.db.list_client_ledgers(trust_account_id)

    def list_client_ledgers_for_merchant(self, merchant_id: int) -> list[ClientLedgerEntity]:
        """List client ledgers across every trust account of a merchant."""
        return self.db.list_client_ledgers_by_merchant(merchant_id)

    def close_client_ledger(self, client_ledger_id: int) -> ClientLedgerEntity:
        """Close an empty client ledger.

        The close is a versioned write, so it fails rather than closing a
        ledger that a concurrent transaction has just funded.

        Raises:
            NotFoundError: If the ledger doesn't exist
            AccountClosedError: If the ledger is already closed
            DependencyError: If the ledger still holds funds
            ConcurrentModificationError: If the ledger changed during the close
        """
        ledger = self.require_client_ledger(client_ledger_id)
        if not ledger.is_active:
            raise errors.AccountClosedError(errors.client_ledger_closed(client_ledger_id))
        if ledger.current_balance != 0:
            raise errors.DependencyError(
                errors.ledger_close_blocked(client_ledger_id, ledger.current_balance)
            )
        closed = self.db.close_client_ledger(client_ledger_id, ledger.version)
        logger.info("Closed client ledger %s", client_ledger_id)
        return closed
