"""Balance calculation for client ledgers.

All arithmetic is done on Decimal values quantized to cents, so a replay of
the transaction log reproduces the stored ``balance_after`` values exactly.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Iterator

from trustledger.domain.entities import Transaction, TransactionType

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_cents(value: Decimal) -> Decimal:
    """Quantize a Decimal to two places."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def signed_amount(transaction_type: TransactionType, amount: Decimal) -> Decimal:
    """Return the effect of a transaction on a ledger balance.

    Deposits and interest are positive, withdrawals and fees negative.
    """
    transaction_type = TransactionType(transaction_type)
    if transaction_type.is_credit:
        return to_cents(amount)
    return -to_cents(amount)


def compute_new_balance(
    current_balance: Decimal, transaction_type: TransactionType, amount: Decimal
) -> Decimal:
    """Compute the ledger balance after applying a transaction.

    Args:
        current_balance: Ledger balance before the transaction
        transaction_type: Kind of transaction
        amount: Positive transaction amount

    Returns:
        New ledger balance, quantized to cents
    """
    return to_cents(current_balance + signed_amount(transaction_type, amount))


def replay_balances(
    transactions: Iterable[Transaction], opening_balance: Decimal = ZERO
) -> Iterator[tuple[Transaction, Decimal]]:
    """Replay a ledger history in insertion order.

    Yields each transaction with the balance it should have recorded as
    ``balance_after``.
    """
    balance = to_cents(opening_balance)
    for txn in transactions:
        balance = compute_new_balance(balance, txn.transaction_type, txn.amount)
        yield txn, balance
