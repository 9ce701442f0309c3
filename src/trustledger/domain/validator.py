"""Transaction validation.

The validator is a pure check: it receives the request together with the
trust account and client ledger it refers to and either returns a
``ValidatedTransaction`` or raises a ``DomainError`` subclass.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from trustledger.domain import errors
from trustledger.domain.balance import CENTS
from trustledger.domain.entities import (
    ClientLedger,
    TransactionRequest,
    TransactionStatus,
    TransactionType,
    TrustAccount,
    ValidatedTransaction,
)
from trustledger.utils.amount_parser import parse_amount

# Money columns are NUMERIC(14, 2)
MAX_INTEGER_DIGITS = 12
MAX_MAGNITUDE = Decimal(10) ** MAX_INTEGER_DIGITS


def parse_transaction_type(value: Any) -> TransactionType:
    """Parse a transaction type from an enum member or a string."""
    if isinstance(value, TransactionType):
        return value
    if isinstance(value, str):
        try:
            return TransactionType(value.strip().lower())
        except ValueError:
            pass
    kinds = ", ".join(t.value for t in TransactionType)
    raise errors.InvalidTypeError(f"Invalid transaction type '{value}'. Expected one of: {kinds}")


def parse_money(value: Any) -> Decimal:
    """Parse a money value of either sign as a Decimal with cent precision.

    Floats and booleans are rejected outright, as are values with more than
    ``MAX_INTEGER_DIGITS`` digits before the decimal point.

    Raises:
        InvalidAmountError: If the value is not a finite cent-precision decimal
            that fits a money column
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise errors.InvalidAmountError(
            f"Amount must be given as a decimal string or Decimal, not {type(value).__name__}"
        )

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = parse_amount(value)
        except ValueError as e:
            raise errors.InvalidAmountError(str(e)) from e
    else:
        raise errors.InvalidAmountError(f"Invalid amount {value!r}")

    if not amount.is_finite():
        raise errors.InvalidAmountError(f"Amount {value!r} is not a finite number")
    if abs(amount) >= MAX_MAGNITUDE:
        raise errors.InvalidAmountError(
            f"Amount {value!r} exceeds {MAX_INTEGER_DIGITS} integer digits"
        )
    try:
        quantized = amount.quantize(CENTS)
    except InvalidOperation as e:
        raise errors.InvalidAmountError(f"Invalid amount {value!r}") from e
    if amount != quantized:
        raise errors.InvalidAmountError(f"Amount {amount} has more than two decimal places")

    return quantized


def parse_positive_amount(value: Any) -> Decimal:
    """Parse a transaction amount as a positive Decimal with cent precision."""
    amount = parse_money(value)
    if amount <= 0:
        raise errors.InvalidAmountError(f"Amount must be positive, got {amount}")
    return amount


class TransactionValidator:
    """Checks a transaction request against schema and business rules."""

    def validate(
        self,
        request: TransactionRequest,
        trust_account: Optional[TrustAccount],
        ledger: Optional[ClientLedger],
    ) -> ValidatedTransaction:
        """Validate a request against the referenced account and ledger.

        Args:
            request: Transaction request from the caller
            trust_account: Trust account referenced by the request, or None if missing
            ledger: Client ledger referenced by the request, or None if missing

        Returns:
            ValidatedTransaction ready to apply

        Raises:
            InvalidTypeError: Unknown transaction type
            InvalidAmountError: Zero, negative, malformed or oversized amount
            NotFoundError: Account or ledger missing, or ledger in another account
            AccountClosedError: Account or ledger closed
            InsufficientFundsError: Debit larger than the ledger balance
        """
        transaction_type = parse_transaction_type(request.transaction_type)
        amount = parse_positive_amount(request.amount)

        if trust_account is None:
            raise errors.NotFoundError(errors.trust_account_not_found(request.trust_account_id))
        if ledger is None:
            raise errors.NotFoundError(errors.client_ledger_not_found(request.client_ledger_id))
        if ledger.trust_account_id != trust_account.id:
            raise errors.NotFoundError(errors.ledger_not_in_account(ledger.id, trust_account.id))

        if not trust_account.is_active:
            raise errors.AccountClosedError(errors.trust_account_closed(trust_account.id))
        if not ledger.is_active:
            raise errors.AccountClosedError(errors.client_ledger_closed(ledger.id))

        self.check_funds(ledger, transaction_type, amount)
        self.check_capacity(trust_account, ledger, transaction_type, amount)

        return ValidatedTransaction(
            trust_account_id=trust_account.id,
            client_ledger_id=ledger.id,
            transaction_type=transaction_type,
            amount=amount,
            description=request.description,
            reference_number=request.reference_number,
            created_by=request.created_by,
            status=TransactionStatus.PENDING if request.pending else TransactionStatus.COMPLETED,
        )

    def check_funds(
        self, ledger: ClientLedger, transaction_type: TransactionType, amount: Decimal
    ) -> None:
        """Reject debits that exceed the ledger's current balance."""
        if not transaction_type.is_credit and amount > ledger.current_balance:
            raise errors.InsufficientFundsError(
                errors.insufficient_funds(ledger.id, ledger.current_balance, amount)
            )

    def check_capacity(
        self,
        trust_account: TrustAccount,
        ledger: ClientLedger,
        transaction_type: TransactionType,
        amount: Decimal,
    ) -> None:
        """Reject credits that would push a balance past the money column range."""
        if not transaction_type.is_credit:
            return
        if max(ledger.current_balance, trust_account.balance) + amount >= MAX_MAGNITUDE:
            raise errors.InvalidAmountError(
                f"Credit of {amount} would exceed {MAX_INTEGER_DIGITS} integer digits "
                f"on ledger {ledger.id}"
            )

    def revalidate(
        self,
        validated: ValidatedTransaction,
        trust_account: Optional[TrustAccount],
        ledger: Optional[ClientLedger],
    ) -> None:
        """Re-check a validated transaction against freshly read state."""
        request = TransactionRequest(
            trust_account_id=validated.trust_account_id,
            client_ledger_id=validated.client_ledger_id,
            transaction_type=validated.transaction_type,
            amount=validated.amount,
        )
        self.validate(request, trust_account, ledger)
