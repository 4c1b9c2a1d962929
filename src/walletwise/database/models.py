"""SQLAlchemy models for walletwise database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Wallet(Base):
    """Wallet model."""

    __tablename__ = "wallets"

    id = Column(String(32), primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    type = Column(String, nullable=False)
    color = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="wallet")


class Category(Base):
    """Category model."""

    __tablename__ = "categories"

    id = Column(String(32), primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=False)
    color = Column(String, nullable=False)
    monthly_budget = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="category")


class Transaction(Base):
    """Transaction model. ``amount`` is always a positive magnitude."""

    __tablename__ = "transactions"

    id = Column(String(32), primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    category_id = Column(String(32), ForeignKey("categories.id"), nullable=True)
    wallet_id = Column(String(32), ForeignKey("wallets.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    wallet = relationship("Wallet", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")


class Profile(Base):
    """Profile model holding the budget anchor."""

    __tablename__ = "profiles"

    user_id = Column(String, primary_key=True)
    total_budget = Column(Numeric(14, 2), nullable=False, default=0)
    reset_day = Column(Integer, nullable=False, default=1)
    period_type = Column(String, nullable=False, default="monthly")
    week_start = Column(String, nullable=False, default="monday")
    currency = Column(String, nullable=False, default="IDR")
    display_name = Column(String, nullable=True)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
