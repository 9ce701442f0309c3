"""Tests for balance calculation."""

from datetime import datetime, UTC
from decimal import Decimal

import pytest

from trustledger.domain.balance import (
    ZERO,
    compute_new_balance,
    replay_balances,
    signed_amount,
    to_cents,
)
from trustledger.domain.entities import Transaction, TransactionStatus, TransactionType


def _txn(txn_id, transaction_type, amount, balance_after=ZERO):
    return Transaction(
        id=txn_id,
        trust_account_id=1,
        client_ledger_id=1,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        balance_after=balance_after,
        description=None,
        reference_number=None,
        status=TransactionStatus.COMPLETED,
        created_by=None,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.mark.parametrize(
    "transaction_type,expected",
    [
        (TransactionType.DEPOSIT, Decimal("1100.00")),
        (TransactionType.INTEREST, Decimal("1100.00")),
        (TransactionType.WITHDRAWAL, Decimal("900.00")),
        (TransactionType.FEE, Decimal("900.00")),
    ],
)
def test_compute_new_balance_by_type(transaction_type, expected):
    """Credits add to the balance, debits subtract."""
    assert compute_new_balance(Decimal("1000.00"), transaction_type, Decimal("100.00")) == expected


def test_compute_new_balance_accepts_type_value():
    """Plain string values of the enum are accepted."""
    assert compute_new_balance(ZERO, "deposit", Decimal("5.00")) == Decimal("5.00")


def test_withdrawal_of_full_balance_reaches_zero():
    """A debit equal to the balance leaves exactly zero."""
    result = compute_new_balance(Decimal("250.75"), TransactionType.WITHDRAWAL, Decimal("250.75"))
    assert result == ZERO


def test_cent_arithmetic_is_exact():
    """Decimal arithmetic does not drift like floats do."""
    balance = ZERO
    for _ in range(10):
        balance = compute_new_balance(balance, TransactionType.DEPOSIT, Decimal("0.10"))
    assert balance == Decimal("1.00")


def test_signed_amount():
    """Signed amount carries the direction of the transaction type."""
    assert signed_amount(TransactionType.DEPOSIT, Decimal("10")) == Decimal("10.00")
    assert signed_amount(TransactionType.FEE, Decimal("10")) == Decimal("-10.00")


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("1.005")) == Decimal("1.01")
    assert to_cents(Decimal("1.004")) == Decimal("1.00")


def test_replay_balances_from_zero():
    """Replaying a history yields the running balance after each transaction."""
    history = [
        _txn(1, TransactionType.DEPOSIT, "1000.00"),
        _txn(2, TransactionType.WITHDRAWAL, "300.00"),
        _txn(3, TransactionType.INTEREST, "1.25"),
        _txn(4, TransactionType.FEE, "0.25"),
    ]

    balances = [balance for _, balance in replay_balances(history)]

    assert balances == [
        Decimal("1000.00"),
        Decimal("700.00"),
        Decimal("701.25"),
        Decimal("701.00"),
    ]


def test_replay_balances_with_opening_balance():
    history = [_txn(1, TransactionType.WITHDRAWAL, "20.00")]
    result = list(replay_balances(history, opening_balance=Decimal("50")))
    assert result[0][1] == Decimal("30.00")


def test_replay_balances_empty_history():
    assert list(replay_balances([])) == []
