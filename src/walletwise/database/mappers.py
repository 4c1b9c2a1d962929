"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, keeping the domain entities
independent of the table layout.
"""

from datetime import datetime, UTC
from decimal import Decimal

from walletwise.domain import entities as domain
from walletwise.database.models import (
    Wallet as ORMWallet,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    Profile as ORMProfile,
)


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; stored timestamps are UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def wallet_to_domain(orm_wallet: ORMWallet) -> domain.Wallet:
    """Convert SQLAlchemy Wallet model to domain Wallet entity."""
    return domain.Wallet(
        id=orm_wallet.id,
        user_id=orm_wallet.user_id,
        name=orm_wallet.name,
        balance=_decimal(orm_wallet.balance),
        type=domain.WalletType(orm_wallet.type),
        color=orm_wallet.color,
        created_at=_aware(orm_wallet.created_at),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        user_id=orm_category.user_id,
        name=orm_category.name,
        icon=orm_category.icon,
        color=orm_category.color,
        monthly_budget=(
            _decimal(orm_category.monthly_budget) if orm_category.monthly_budget is not None else None
        ),
        created_at=_aware(orm_category.created_at),
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        type=domain.TransactionType(orm_transaction.type),
        amount=_decimal(orm_transaction.amount),
        description=orm_transaction.description,
        date=orm_transaction.date,
        category_id=orm_transaction.category_id,
        wallet_id=orm_transaction.wallet_id,
        created_at=_aware(orm_transaction.created_at),
    )


def profile_to_domain(orm_profile: ORMProfile) -> domain.Profile:
    """Convert SQLAlchemy Profile model to domain Profile entity."""
    return domain.Profile(
        user_id=orm_profile.user_id,
        total_budget=_decimal(orm_profile.total_budget),
        reset_day=orm_profile.reset_day,
        period_type=domain.PeriodType(orm_profile.period_type),
        week_start=domain.WeekStart(orm_profile.week_start),
        currency=orm_profile.currency,
        display_name=orm_profile.display_name,
    )


def apply_wallet(orm_wallet: ORMWallet, wallet: domain.Wallet) -> ORMWallet:
    """Copy a domain Wallet onto a SQLAlchemy Wallet model."""
    orm_wallet.id = wallet.id
    orm_wallet.user_id = wallet.user_id
    orm_wallet.name = wallet.name
    orm_wallet.balance = wallet.balance
    orm_wallet.type = wallet.type.value
    orm_wallet.color = wallet.color
    orm_wallet.created_at = wallet.created_at
    return orm_wallet


def apply_category(orm_category: ORMCategory, category: domain.Category) -> ORMCategory:
    """Copy a domain Category onto a SQLAlchemy Category model."""
    orm_category.id = category.id
    orm_category.user_id = category.user_id
    orm_category.name = category.name
    orm_category.icon = category.icon
    orm_category.color = category.color
    orm_category.monthly_budget = category.monthly_budget
    orm_category.created_at = category.created_at
    return orm_category


def apply_transaction(orm_transaction: ORMTransaction, transaction: domain.Transaction) -> ORMTransaction:
    """Copy a domain Transaction onto a SQLAlchemy Transaction model."""
    orm_transaction.id = transaction.id
    orm_transaction.user_id = transaction.user_id
    orm_transaction.type = transaction.type.value
    orm_transaction.amount = transaction.amount
    orm_transaction.description = transaction.description
    orm_transaction.date = transaction.date
    orm_transaction.category_id = transaction.category_id
    orm_transaction.wallet_id = transaction.wallet_id
    orm_transaction.created_at = transaction.created_at
    return orm_transaction


def apply_profile(orm_profile: ORMProfile, profile: domain.Profile) -> ORMProfile:
    """Copy a domain Profile onto a SQLAlchemy Profile model."""
    orm_profile.user_id = profile.user_id
    orm_profile.total_budget = profile.total_budget
    orm_profile.reset_day = profile.reset_day
    orm_profile.period_type = profile.period_type.value
    orm_profile.week_start = profile.week_start.value
    orm_profile.currency = profile.currency
    orm_profile.display_name = profile.display_name
    return orm_profile
