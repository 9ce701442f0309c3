"""Mapper functions to convert SQLAlchemy models to domain entities.

SQLite drops timezone information on the way back, so every timestamp is
normalised to UTC here and the domain only ever sees aware datetimes.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from trustledger.domain import entities as domain
from trustledger.database.models import (
    TrustAccount as ORMTrustAccount,
    ClientLedger as ORMClientLedger,
    Transaction as ORMTransaction,
    BankStatement as ORMBankStatement,
    Reconciliation as ORMReconciliation,
)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _money(value) -> Decimal:
    return Decimal(value if value is not None else 0).quantize(Decimal("0.01"))


def trust_account_to_domain(orm_account: ORMTrustAccount) -> domain.TrustAccount:
    """Convert SQLAlchemy TrustAccount model to domain TrustAccount entity."""
    return domain.TrustAccount(
        id=orm_account.id,
        merchant_id=orm_account.merchant_id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        account_number=orm_account.account_number,
        status=domain.AccountStatus(orm_account.status),
        balance=_money(orm_account.balance),
        created_at=_utc(orm_account.created_at),
    )


def client_ledger_to_domain(orm_ledger: ORMClientLedger) -> domain.ClientLedger:
    """Convert SQLAlchemy ClientLedger model to domain ClientLedger entity."""
    return domain.ClientLedger(
        id=orm_ledger.id,
        trust_account_id=orm_ledger.trust_account_id,
        client_id=orm_ledger.client_id,
        matter_id=orm_ledger.matter_id or None,
        client_name=orm_ledger.client_name,
        current_balance=_money(orm_ledger.current_balance),
        status=domain.AccountStatus(orm_ledger.status),
        version=orm_ledger.version,
        last_transaction_at=_utc(orm_ledger.last_transaction_at),
        created_at=_utc(orm_ledger.created_at),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        trust_account_id=orm_transaction.trust_account_id,
        client_ledger_id=orm_transaction.client_ledger_id,
        transaction_type=domain.TransactionType(orm_transaction.transaction_type),
        amount=_money(orm_transaction.amount),
        balance_after=_money(orm_transaction.balance_after),
        description=orm_transaction.description,
        reference_number=orm_transaction.reference_number,
        status=domain.TransactionStatus(orm_transaction.status),
        created_by=orm_transaction.created_by,
        created_at=_utc(orm_transaction.created_at),
        completed_at=_utc(orm_transaction.completed_at),
    )


def bank_statement_to_domain(orm_statement: ORMBankStatement) -> domain.BankStatement:
    """Convert SQLAlchemy BankStatement model to domain BankStatement entity."""
    return domain.BankStatement(
        id=orm_statement.id,
        trust_account_id=orm_statement.trust_account_id,
        statement_date=orm_statement.statement_date,
        period_start=orm_statement.period_start,
        period_end=orm_statement.period_end,
        starting_balance=_money(orm_statement.starting_balance),
        ending_balance=_money(orm_statement.ending_balance),
        created_at=_utc(orm_statement.created_at),
    )


def reconciliation_to_domain(orm_rec: ORMReconciliation) -> domain.Reconciliation:
    """Convert SQLAlchemy Reconciliation model to domain Reconciliation entity."""
    return domain.Reconciliation(
        id=orm_rec.id,
        trust_account_id=orm_rec.trust_account_id,
        reconciliation_date=orm_rec.reconciliation_date,
        period_start=orm_rec.period_start,
        period_end=orm_rec.period_end,
        bank_balance=_money(orm_rec.bank_balance),
        book_balance=_money(orm_rec.book_balance),
        difference=_money(orm_rec.difference),
        is_balanced=orm_rec.is_balanced,
        is_provisional=orm_rec.is_provisional,
        pending_count=orm_rec.pending_count,
        status=domain.ReconciliationStatus(orm_rec.status),
        reconciled_by=orm_rec.reconciled_by,
        reviewed_by=orm_rec.reviewed_by,
        reviewed_at=_utc(orm_rec.reviewed_at),
        bank_statement_id=orm_rec.bank_statement_id,
        notes=orm_rec.notes,
        created_at=_utc(orm_rec.created_at),
    )
