"""Concurrent submissions against one client ledger."""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from trustledger.domain import errors
from trustledger.domain.entities import TransactionRequest
from trustledger.domain.transaction import TransactionService


def _run_concurrently(temp_db, requests, workers=4):
    service = TransactionService(temp_db, max_retries=50, retry_backoff=0.001)

    def submit(request):
        try:
            return service.submit_transaction(request)
        except errors.DomainError as e:
            return e

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(submit, requests))
    return results


def test_concurrent_deposits_are_not_lost(
    temp_db, account_service, audit_service, sample_account, sample_ledger
):
    """Every deposit that reports success is reflected exactly once."""
    requests = [
        TransactionRequest(
            trust_account_id=sample_account.id,
            client_ledger_id=sample_ledger.id,
            transaction_type="deposit",
            amount="10.00",
        )
        for _ in range(20)
    ]

    results = _run_concurrently(temp_db, requests)

    applied = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert all(isinstance(e, errors.ConcurrentModificationError) for e in failed)

    ledger = account_service.get_client_ledger(sample_ledger.id)
    assert ledger.current_balance == Decimal("10.00") * len(applied)
    assert ledger.version == len(applied)
    assert sorted(t.balance_after for t in applied) == [
        Decimal("10.00") * (i + 1) for i in range(len(applied))
    ]
    assert audit_service.audit_trust_account(sample_account.id) == []


def test_concurrent_withdrawals_never_overdraw(
    temp_db, submit, account_service, audit_service, sample_account, sample_ledger
):
    """Racing withdrawals cannot take a ledger below zero."""
    submit("deposit", "100.00")
    requests = [
        TransactionRequest(
            trust_account_id=sample_account.id,
            client_ledger_id=sample_ledger.id,
            transaction_type="withdrawal",
            amount="30.00",
        )
        for _ in range(8)
    ]

    results = _run_concurrently(temp_db, requests)

    applied = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(applied) <= 3
    assert all(
        isinstance(e, (errors.InsufficientFundsError, errors.ConcurrentModificationError))
        for e in failed
    )

    ledger = account_service.get_client_ledger(sample_ledger.id)
    assert ledger.current_balance == Decimal("100.00") - Decimal("30.00") * len(applied)
    assert ledger.current_balance >= 0
    assert audit_service.audit_trust_account(sample_account.id) == []
