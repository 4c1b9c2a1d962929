"""Tests for the SQLAlchemy Database implementation."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from walletwise.domain import entities
from walletwise.domain.entities import (
    BalanceDelta,
    MutationKind,
    TransactionMutation,
    TransactionType,
    WalletType,
    WeekStart,
)
from walletwise.domain.errors import PersistenceFailure

CREATED = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)


def _wallet(wallet_id="w1", user_id="local", balance="1000") -> entities.Wallet:
    return entities.Wallet(
        id=wallet_id,
        user_id=user_id,
        name=f"Wallet {wallet_id}",
        balance=Decimal(balance),
        type=WalletType.BANK,
        color="#007AFF",
        created_at=CREATED,
    )


def _category(category_id="c1", user_id="local", budget="500") -> entities.Category:
    return entities.Category(
        id=category_id,
        user_id=user_id,
        name=f"Category {category_id}",
        icon="tag",
        color="#8E8E93",
        monthly_budget=Decimal(budget) if budget is not None else None,
        created_at=CREATED,
    )


def _transaction(txn_id="t1", amount="100", wallet_id="w1", category_id="c1", day=date(2024, 3, 2)):
    return entities.Transaction(
        id=txn_id,
        user_id="local",
        type=TransactionType.EXPENSE,
        amount=Decimal(amount),
        description="Lunch",
        date=day,
        category_id=category_id,
        wallet_id=wallet_id,
        created_at=CREATED,
    )


def _create(temp_db, txn):
    temp_db.save_transaction_mutation(
        "local",
        TransactionMutation(kind=MutationKind.CREATE, transaction=txn),
        [BalanceDelta(txn.wallet_id, txn.signed_amount)],
    )


class TestRoundTrip:
    """Rows come back as equivalent domain entities."""

    def test_wallet_round_trip(self, temp_db):
        wallet = _wallet()
        temp_db.save_wallet(wallet)
        temp_db.disconnect()

        [loaded] = temp_db.load_wallets("local")
        assert isinstance(loaded, entities.Wallet)
        assert loaded == wallet
        assert loaded.created_at.tzinfo is not None

    def test_category_without_budget(self, temp_db):
        temp_db.save_category(_category(budget=None))
        temp_db.disconnect()

        [loaded] = temp_db.load_categories("local")
        assert loaded.monthly_budget is None
        assert not loaded.has_budget

    def test_missing_profile_has_defaults(self, temp_db):
        profile = temp_db.load_profile("nobody")
        assert profile == entities.Profile(user_id="nobody")

    def test_profile_round_trip(self, temp_db):
        profile = entities.Profile(
            user_id="local",
            total_budget=Decimal("3000000"),
            reset_day=25,
            week_start=WeekStart.SUNDAY,
            currency="USD",
            display_name="Sri",
        )
        temp_db.save_profile(profile)
        temp_db.disconnect()

        assert temp_db.load_profile("local") == profile

    def test_transactions_newest_first(self, temp_db):
        temp_db.save_wallet(_wallet())
        temp_db.save_category(_category())
        _create(temp_db, _transaction("t1", day=date(2024, 3, 1)))
        _create(temp_db, _transaction("t2", day=date(2024, 3, 5)))
        temp_db.disconnect()

        assert [t.id for t in temp_db.load_transactions("local")] == ["t2", "t1"]


class TestTransactionMutations:
    """A mutation and its wallet deltas commit together."""

    def test_create_applies_delta(self, temp_db):
        temp_db.save_wallet(_wallet())
        _create(temp_db, _transaction(category_id=None))
        temp_db.disconnect()

        [wallet] = temp_db.load_wallets("local")
        assert wallet.balance == Decimal("900")

    def test_update_and_delete(self, temp_db):
        temp_db.save_wallet(_wallet())
        original = _transaction(category_id=None)
        _create(temp_db, original)

        edited = _transaction(amount="250", category_id=None)
        temp_db.save_transaction_mutation(
            "local",
            TransactionMutation(kind=MutationKind.UPDATE, transaction=edited, previous=original),
            [BalanceDelta("w1", Decimal("-150"))],
        )
        temp_db.disconnect()
        assert temp_db.load_transactions("local")[0].amount == Decimal("250")
        assert temp_db.load_wallets("local")[0].balance == Decimal("750")

        temp_db.save_transaction_mutation(
            "local",
            TransactionMutation(kind=MutationKind.DELETE, transaction=edited),
            [BalanceDelta("w1", Decimal("250"))],
        )
        temp_db.disconnect()
        assert temp_db.load_transactions("local") == []
        assert temp_db.load_wallets("local")[0].balance == Decimal("1000")

    def test_failed_delta_rolls_back_transaction_row(self, temp_db):
        temp_db.save_wallet(_wallet())
        txn = _transaction(category_id=None)

        with pytest.raises(PersistenceFailure):
            temp_db.save_transaction_mutation(
                "local",
                TransactionMutation(kind=MutationKind.CREATE, transaction=txn),
                [BalanceDelta("w1", Decimal("-100")), BalanceDelta("missing", Decimal("5"))],
            )
        temp_db.disconnect()

        assert temp_db.load_transactions("local") == []
        assert temp_db.load_wallets("local")[0].balance == Decimal("1000")

    def test_delta_against_other_users_wallet_fails(self, temp_db):
        temp_db.save_wallet(_wallet(user_id="someone-else"))

        with pytest.raises(PersistenceFailure):
            _create(temp_db, _transaction(category_id=None))
        temp_db.disconnect()

        assert temp_db.load_wallets("someone-else")[0].balance == Decimal("1000")


class TestUserScoping:
    """Every query is restricted to one user."""

    def test_loaders_filter_by_user(self, temp_db):
        temp_db.save_wallet(_wallet("w1", user_id="local"))
        temp_db.save_wallet(_wallet("w2", user_id="other"))
        temp_db.save_category(_category("c2", user_id="other"))

        assert [w.id for w in temp_db.load_wallets("local")] == ["w1"]
        assert temp_db.load_categories("local") == []

    def test_delete_wallet_of_other_user_fails(self, temp_db):
        temp_db.save_wallet(_wallet("w2", user_id="other"))

        with pytest.raises(PersistenceFailure):
            temp_db.delete_wallet("local", "w2")
        assert len(temp_db.load_wallets("other")) == 1

    def test_reset_user_leaves_other_users(self, temp_db):
        temp_db.save_wallet(_wallet("w1"))
        temp_db.save_wallet(_wallet("w2", user_id="other"))
        temp_db.save_category(_category("c1"))
        _create(temp_db, _transaction())
        temp_db.save_profile(entities.Profile(user_id="local", total_budget=Decimal("5000"), reset_day=10))

        temp_db.reset_user("local")
        temp_db.disconnect()

        assert temp_db.load_wallets("local") == []
        assert temp_db.load_categories("local") == []
        assert temp_db.load_transactions("local") == []
        assert temp_db.load_profile("local").total_budget == Decimal("0")
        assert temp_db.load_profile("local").reset_day == 10
        assert len(temp_db.load_wallets("other")) == 1


class TestDeletes:
    def test_delete_wallet_with_transactions_fails(self, temp_db):
        temp_db.save_wallet(_wallet())
        _create(temp_db, _transaction(category_id=None))

        with pytest.raises(PersistenceFailure):
            temp_db.delete_wallet("local", "w1")
        temp_db.disconnect()
        assert len(temp_db.load_wallets("local")) == 1

    def test_delete_category_reassigns_transactions(self, temp_db):
        temp_db.save_wallet(_wallet())
        temp_db.save_category(_category("c1"))
        temp_db.save_category(_category("c2"))
        _create(temp_db, _transaction("t1", category_id="c1"))
        _create(temp_db, _transaction("t2", category_id="c1"))

        temp_db.delete_category("local", "c1", reassign_to="c2")
        temp_db.disconnect()

        assert [c.id for c in temp_db.load_categories("local")] == ["c2"]
        assert {t.category_id for t in temp_db.load_transactions("local")} == {"c2"}

    def test_delete_category_detaches_transactions(self, temp_db):
        temp_db.save_wallet(_wallet())
        temp_db.save_category(_category("c1"))
        _create(temp_db, _transaction(category_id="c1"))

        temp_db.delete_category("local", "c1")
        temp_db.disconnect()

        assert temp_db.load_categories("local") == []
        assert temp_db.load_transactions("local")[0].category_id is None
