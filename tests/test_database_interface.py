"""Tests for the database layer."""

from datetime import datetime, timedelta, UTC
from decimal import Decimal

import pytest

from trustledger.database import Database, create_database, create_sqlite_database
from trustledger.domain import errors
from trustledger.domain.entities import (
    AccountStatus,
    ClientLedger,
    Transaction,
    TransactionStatus,
    TransactionType,
    TrustAccount,
)


@pytest.fixture
def ledger_ids(temp_db):
    account_id = temp_db.create_trust_account(merchant_id=1, name="Main IOLTA")
    ledger_id = temp_db.create_client_ledger(account_id, "C-1")
    return account_id, ledger_id


def _record(temp_db, account_id, ledger_id, version, amount, balance_after, **kwargs):
    return temp_db.record_transaction(
        trust_account_id=account_id,
        client_ledger_id=ledger_id,
        expected_version=version,
        transaction_type=TransactionType.DEPOSIT,
        amount=amount,
        balance_after=balance_after,
        balance_delta=amount,
        **kwargs,
    )


def test_factory_returns_database(temp_db):
    assert isinstance(temp_db, Database)


def test_create_database_falls_back_to_sqlite(tmp_path, monkeypatch):
    monkeypatch.delenv("TRUSTLEDGER_DB_URL", raising=False)
    db = create_database(database_path=str(tmp_path / "ledger.db"))
    try:
        assert db.database_url.startswith("sqlite:///")
    finally:
        db.disconnect()


def test_create_database_from_env_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'env.db'}"
    monkeypatch.setenv("TRUSTLEDGER_DB_URL", url)
    db = create_database()
    try:
        assert db.database_url == url
    finally:
        db.disconnect()


def test_lock_timeout_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TRUSTLEDGER_LOCK_TIMEOUT", "1.5")
    db = create_sqlite_database(database_path=str(tmp_path / "t.db"))
    try:
        assert db.lock_timeout == 1.5
    finally:
        db.disconnect()


def test_returns_domain_entities(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids

    account = temp_db.get_trust_account(account_id)
    ledger = temp_db.get_client_ledger(ledger_id)

    assert isinstance(account, TrustAccount)
    assert isinstance(ledger, ClientLedger)
    assert account.created_at.tzinfo is not None
    assert ledger.current_balance == Decimal("0.00")
    assert temp_db.get_trust_account(999) is None
    assert temp_db.get_client_ledger(999) is None


def test_record_transaction_bumps_version(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids

    txn = _record(temp_db, account_id, ledger_id, 0, Decimal("100.00"), Decimal("100.00"))

    assert isinstance(txn, Transaction)
    assert txn.id is not None
    assert txn.status == TransactionStatus.COMPLETED
    ledger = temp_db.get_client_ledger(ledger_id)
    assert ledger.version == 1
    assert ledger.current_balance == Decimal("100.00")
    assert temp_db.get_trust_account(account_id).balance == Decimal("100.00")


def test_stale_version_rejected(temp_db, ledger_ids):
    """A write based on an old read is refused and changes nothing."""
    account_id, ledger_id = ledger_ids
    _record(temp_db, account_id, ledger_id, 0, Decimal("100.00"), Decimal("100.00"))

    with pytest.raises(errors.ConcurrentModificationError):
        _record(temp_db, account_id, ledger_id, 0, Decimal("5.00"), Decimal("5.00"))

    ledger = temp_db.get_client_ledger(ledger_id)
    assert ledger.current_balance == Decimal("100.00")
    assert ledger.version == 1
    assert len(temp_db.list_transactions(ledger_id)) == 1


def test_failed_insert_rolls_back_balance(temp_db, ledger_ids):
    """When the transaction row cannot be written, the balance update is undone."""
    account_id, ledger_id = ledger_ids
    _record(temp_db, account_id, ledger_id, 0, Decimal("100.00"), Decimal("100.00"))

    with pytest.raises(errors.PersistenceError):
        temp_db.record_transaction(
            trust_account_id=account_id,
            client_ledger_id=ledger_id,
            expected_version=1,
            transaction_type=TransactionType.DEPOSIT,
            amount=None,
            balance_after=Decimal("150.00"),
            balance_delta=Decimal("50.00"),
        )

    ledger = temp_db.get_client_ledger(ledger_id)
    assert ledger.current_balance == Decimal("100.00")
    assert ledger.version == 1
    assert temp_db.get_trust_account(account_id).balance == Decimal("100.00")
    assert len(temp_db.list_transactions(ledger_id)) == 1


def test_list_transactions_paging(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    balance = Decimal("0.00")
    for version in range(5):
        balance += Decimal("1.00")
        _record(temp_db, account_id, ledger_id, version, Decimal("1.00"), balance)

    first = temp_db.list_transactions(ledger_id, limit=2)
    rest = temp_db.list_transactions(ledger_id, after_id=first[-1].id)

    assert [t.balance_after for t in first] == [Decimal("1.00"), Decimal("2.00")]
    assert [t.balance_after for t in rest] == [Decimal("3.00"), Decimal("4.00"), Decimal("5.00")]


def test_pending_transactions_and_completion(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    txn = _record(
        temp_db,
        account_id,
        ledger_id,
        0,
        Decimal("10.00"),
        Decimal("10.00"),
        status=TransactionStatus.PENDING,
    )

    assert [t.id for t in temp_db.list_pending_transactions(account_id)] == [txn.id]
    past = datetime.now(UTC) - timedelta(days=1)
    assert temp_db.list_pending_transactions(account_id, created_until=past) == []

    completed = temp_db.mark_transaction_completed(txn.id)
    assert completed.status == TransactionStatus.COMPLETED
    assert temp_db.mark_transaction_completed(txn.id) is None
    assert temp_db.list_pending_transactions(account_id) == []


def test_balance_as_of(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    _record(temp_db, account_id, ledger_id, 0, Decimal("10.00"), Decimal("10.00"))
    _record(temp_db, account_id, ledger_id, 1, Decimal("5.00"), Decimal("15.00"))

    now = datetime.now(UTC)
    assert temp_db.get_balance_as_of(ledger_id, now + timedelta(minutes=1)) == Decimal("15.00")
    assert temp_db.get_balance_as_of(ledger_id, now - timedelta(days=1)) is None


def test_find_client_ledger(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    temp_db.create_client_ledger(account_id, "C-1", matter_id="M-1")

    assert temp_db.find_client_ledger(account_id, "C-1").id == ledger_id
    assert temp_db.find_client_ledger(account_id, "C-1", "M-1").id != ledger_id
    assert temp_db.find_client_ledger(account_id, "C-2") is None


def test_duplicate_ledger_constraint(temp_db, ledger_ids):
    account_id, _ = ledger_ids
    temp_db.create_client_ledger(account_id, "C-9", matter_id="M-9")

    with pytest.raises(errors.ConflictError):
        temp_db.create_client_ledger(account_id, "C-9", matter_id="M-9")


def test_duplicate_ledger_without_matter(temp_db, ledger_ids):
    """Two ledgers for the same client with no matter collide like any other pair."""
    account_id, _ = ledger_ids

    with pytest.raises(errors.ConflictError):
        temp_db.create_client_ledger(account_id, "C-1")
    assert temp_db.get_client_ledger(ledger_ids[1]).matter_id is None


def test_close_client_ledger_bumps_version(temp_db, ledger_ids):
    _, ledger_id = ledger_ids

    closed = temp_db.close_client_ledger(ledger_id, expected_version=0)

    assert closed.status == AccountStatus.CLOSED
    assert closed.version == 1


def test_close_client_ledger_stale_version(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    _record(temp_db, account_id, ledger_id, 0, Decimal("10.00"), Decimal("10.00"))
    temp_db.record_transaction(
        trust_account_id=account_id,
        client_ledger_id=ledger_id,
        expected_version=1,
        transaction_type=TransactionType.WITHDRAWAL,
        amount=Decimal("10.00"),
        balance_after=Decimal("0.00"),
        balance_delta=Decimal("-10.00"),
    )

    with pytest.raises(errors.ConcurrentModificationError):
        temp_db.close_client_ledger(ledger_id, expected_version=0)
    assert temp_db.get_client_ledger(ledger_id).is_active


def test_close_funded_client_ledger(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    _record(temp_db, account_id, ledger_id, 0, Decimal("10.00"), Decimal("10.00"))

    with pytest.raises(errors.DependencyError):
        temp_db.close_client_ledger(ledger_id, expected_version=1)
    assert temp_db.get_client_ledger(ledger_id).is_active


def test_transaction_on_closed_ledger_rejected(temp_db, ledger_ids):
    """A write read against the pre-close version cannot land after the close."""
    account_id, ledger_id = ledger_ids
    temp_db.close_client_ledger(ledger_id, expected_version=0)

    with pytest.raises(errors.ConcurrentModificationError):
        _record(temp_db, account_id, ledger_id, 0, Decimal("5.00"), Decimal("5.00"))
    assert temp_db.list_transactions(ledger_id) == []


def test_close_missing(temp_db):
    with pytest.raises(errors.NotFoundError):
        temp_db.close_client_ledger(999, expected_version=0)
    with pytest.raises(errors.NotFoundError):
        temp_db.close_trust_account(999, {})


def test_close_trust_account_is_atomic(temp_db, ledger_ids):
    """If one ledger cannot be closed, neither the other ledgers nor the account are."""
    account_id, ledger_id = ledger_ids
    other_id = temp_db.create_client_ledger(account_id, "C-2")

    with pytest.raises(errors.ConcurrentModificationError):
        temp_db.close_trust_account(account_id, {ledger_id: 0, other_id: 7})

    assert temp_db.get_trust_account(account_id).is_active
    assert temp_db.get_client_ledger(ledger_id).is_active
    assert temp_db.get_client_ledger(ledger_id).version == 0

    closed = temp_db.close_trust_account(account_id, {ledger_id: 0, other_id: 0})
    assert not closed.is_active
    assert not temp_db.get_client_ledger(other_id).is_active


def test_list_client_ledgers_by_merchant(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    other_account = temp_db.create_trust_account(merchant_id=1, name="Second")
    other_ledger = temp_db.create_client_ledger(other_account, "C-5")
    temp_db.create_client_ledger(temp_db.create_trust_account(merchant_id=2, name="X"), "C-6")

    ledgers = temp_db.list_client_ledgers_by_merchant(1)

    assert [ledger.id for ledger in ledgers] == [ledger_id, other_ledger]
    assert temp_db.list_client_ledgers_by_merchant(99) == []


def test_list_account_transactions_paging(temp_db, ledger_ids):
    account_id, ledger_id = ledger_ids
    other_id = temp_db.create_client_ledger(account_id, "C-2")
    _record(temp_db, account_id, ledger_id, 0, Decimal("1.00"), Decimal("1.00"))
    _record(temp_db, account_id, other_id, 0, Decimal("2.00"), Decimal("2.00"))
    _record(temp_db, account_id, ledger_id, 1, Decimal("3.00"), Decimal("4.00"))

    first = temp_db.list_account_transactions(account_id, limit=2)
    rest = temp_db.list_account_transactions(account_id, after_id=first[-1].id)

    assert [t.client_ledger_id for t in first] == [ledger_id, other_id]
    assert [t.amount for t in rest] == [Decimal("3.00")]
    assert temp_db.list_account_transactions(999) == []


def test_account_balance_sums_exactly(temp_db, ledger_ids):
    """Cent amounts accumulate without binary float drift."""
    account_id, ledger_id = ledger_ids
    balance = Decimal("0.00")
    for version in range(30):
        amount = Decimal("0.10") if version % 2 else Decimal("0.20")
        balance += amount
        _record(temp_db, account_id, ledger_id, version, amount, balance)

    assert temp_db.get_trust_account(account_id).balance == Decimal("4.50")
    assert temp_db.get_client_ledger(ledger_id).current_balance == Decimal("4.50")
