"""Shared pytest fixtures for trustledger tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from trustledger.database.factories import create_sqlite_database
from trustledger.domain.account import AccountService
from trustledger.domain.audit import AuditService
from trustledger.domain.entities import TransactionRequest
from trustledger.domain.reconciliation import ReconciliationService
from trustledger.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path, lock_timeout=5.0)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database and no retry delay."""
    return TransactionService(temp_db, retry_backoff=0)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def audit_service(temp_db):
    """Create an AuditService with a temporary database."""
    return AuditService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a sample trust account for testing."""
    account_id = account_service.create_trust_account(
        merchant_id=1, name="Main IOLTA", bank_name="Test Bank"
    )
    return account_service.get_trust_account(account_id)


@pytest.fixture
def sample_ledger(account_service, sample_account):
    """Open a sample client ledger in the sample account."""
    ledger_id = account_service.open_client_ledger(
        trust_account_id=sample_account.id, client_id="C-100", matter_id="M-1", client_name="Jane Roe"
    )
    return account_service.get_client_ledger(ledger_id)


@pytest.fixture
def submit(transaction_service, sample_account, sample_ledger):
    """Return a helper that submits a transaction against the sample ledger."""

    def _submit(transaction_type, amount, ledger_id=None, **kwargs):
        request = TransactionRequest(
            trust_account_id=sample_account.id,
            client_ledger_id=ledger_id if ledger_id is not None else sample_ledger.id,
            transaction_type=transaction_type,
            amount=amount,
            **kwargs,
        )
        return transaction_service.submit_transaction(request)

    return _submit


@pytest.fixture
def funded_ledger(submit, account_service, sample_ledger):
    """Sample ledger holding 100.00."""
    submit("deposit", Decimal("100.00"))
    return account_service.get_client_ledger(sample_ledger.id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
