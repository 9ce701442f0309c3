"""SQLAlchemy models for the trust ledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Index,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

# Money columns: 12 integer digits, cents precision
Money = Numeric(14, 2)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TrustAccount(Base):
    """Pooled IOLTA bank account model."""

    __tablename__ = "trust_accounts"

    id = Column(Integer, primary_key=True)
    merchant_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    bank_name = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    status = Column(String, default="active", nullable=False)
    balance = Column(Money, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("merchant_id", "name", name="uq_trust_account_merchant_name"),)

    # Relationships
    client_ledgers = relationship("ClientLedger", back_populates="trust_account")
    reconciliations = relationship("Reconciliation", back_populates="trust_account")


class ClientLedger(Base):
    """Per-client sub-balance of a trust account.

    ``version`` is bumped on every balance or status change and guards writers against
    lost updates.
    """

    __tablename__ = "iolta_client_ledgers"

    id = Column(Integer, primary_key=True)
    trust_account_id = Column(Integer, ForeignKey("trust_accounts.id"), nullable=False, index=True)
    client_id = Column(String, nullable=False)
    # "" when the ledger has no matter, so the unique constraint covers it
    matter_id = Column(String, default="", nullable=False)
    client_name = Column(String, nullable=True)
    current_balance = Column(Money, default=0, nullable=False)
    status = Column(String, default="active", nullable=False)
    version = Column(Integer, default=0, nullable=False)
    last_transaction_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("trust_account_id", "client_id", "matter_id", name="uq_ledger_client_matter"),
    )

    # Relationships
    trust_account = relationship("TrustAccount", back_populates="client_ledgers")
    transactions = relationship("Transaction", back_populates="client_ledger", order_by="Transaction.id")


class Transaction(Base):
    """Append-only ledger transaction model."""

    __tablename__ = "iolta_transactions"

    id = Column(Integer, primary_key=True)
    trust_account_id = Column(Integer, ForeignKey("trust_accounts.id"), nullable=False)
    client_ledger_id = Column(Integer, ForeignKey("iolta_client_ledgers.id"), nullable=False)
    transaction_type = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    balance_after = Column(Money, nullable=False)
    description = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    status = Column(String, default="completed", nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_iolta_transactions_ledger_id", "client_ledger_id", "id"),
        Index("ix_iolta_transactions_account_status", "trust_account_id", "status"),
    )

    # Relationships
    client_ledger = relationship("ClientLedger", back_populates="transactions")


class BankStatement(Base):
    """Bank statement figures model."""

    __tablename__ = "iolta_bank_statements"

    id = Column(Integer, primary_key=True)
    trust_account_id = Column(Integer, ForeignKey("trust_accounts.id"), nullable=False, index=True)
    statement_date = Column(Date, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    starting_balance = Column(Money, nullable=False)
    ending_balance = Column(Money, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Reconciliation(Base):
    """Reconciliation record model."""

    __tablename__ = "iolta_reconciliations"

    id = Column(Integer, primary_key=True)
    trust_account_id = Column(Integer, ForeignKey("trust_accounts.id"), nullable=False, index=True)
    reconciliation_date = Column(Date, nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    bank_balance = Column(Money, nullable=False)
    book_balance = Column(Money, nullable=False)
    difference = Column(Money, nullable=False)
    is_balanced = Column(Boolean, nullable=False)
    is_provisional = Column(Boolean, default=False, nullable=False)
    pending_count = Column(Integer, default=0, nullable=False)
    status = Column(String, default="draft", nullable=False)
    reconciled_by = Column(String, nullable=True)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    bank_statement_id = Column(Integer, ForeignKey("iolta_bank_statements.id"), nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    trust_account = relationship("TrustAccount", back_populates="reconciliations")


def create_session_factory(database_url: str, lock_timeout: float = 5.0) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    Args:
        database_url: SQLAlchemy database URL
        lock_timeout: Seconds a writer waits for a lock before giving up
    """
    backend = make_url(database_url).get_backend_name()
    connect_args: dict = {}
    if backend == "sqlite":
        connect_args["timeout"] = lock_timeout
        connect_args["check_same_thread"] = False
    elif backend == "postgresql":
        connect_args["options"] = f"-c lock_timeout={int(lock_timeout * 1000)}"

    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
