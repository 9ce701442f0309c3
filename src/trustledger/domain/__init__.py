"""Domain layer for trustledger."""

from trustledger.domain.account import AccountService
from trustledger.domain.audit import AuditService
from trustledger.domain.reconciliation import ReconciliationService
from trustledger.domain.transaction import (
    AccountTransactionHistory,
    TransactionHistory,
    TransactionService,
)
from trustledger.domain.validator import TransactionValidator

__all__ = [
    "AccountService",
    "AccountTransactionHistory",
    "AuditService",
    "ReconciliationService",
    "TransactionHistory",
    "TransactionService",
    "TransactionValidator",
]
