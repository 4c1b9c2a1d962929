"""Tests for the Balance Reconciler."""

import random
import threading
from datetime import date
from decimal import Decimal

import pytest

from walletwise.domain.category import CategoryService
from walletwise.domain.entities import MutationKind, TransactionType
from walletwise.domain.errors import (
    ConflictError,
    NotFoundError,
    PersistenceFailure,
    ValidationError,
)
from walletwise.domain.reconciler import BalanceReconciler, compute_update_deltas
from walletwise.domain.store import EntityStore
from walletwise.domain.wallet import WalletService

DAY = date(2024, 3, 15)


@pytest.fixture
def ledger():
    """In-memory store with wallets A (100) and B (50) and one category."""
    store = EntityStore("local")
    wallets = WalletService(store)
    a = wallets.create_wallet(name="A", balance=Decimal("100"))
    b = wallets.create_wallet(name="B", balance=Decimal("50"))
    food = CategoryService(store).create_category(name="Food")
    return store, BalanceReconciler(store), a.id, b.id, food.id


def _balance(store, wallet_id):
    return store.get_wallet(wallet_id).balance


def test_create_expense_then_delete_restores_balance():
    """Wallet 500, expense 200 leaves 300; deleting it restores 500."""
    store = EntityStore("local")
    wallet = WalletService(store).create_wallet(name="Cash", balance=Decimal("500"))
    food = CategoryService(store).create_category(name="Food")
    reconciler = BalanceReconciler(store)

    result = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("200"), date=DAY,
        category_id=food.id, wallet_id=wallet.id,
    )
    assert _balance(store, wallet.id) == Decimal("300")
    assert result.kind == MutationKind.CREATE
    assert [(d.wallet_id, d.amount) for d in result.deltas] == [(wallet.id, Decimal("-200"))]

    reconciler.delete_transaction(result.transaction.id)
    assert _balance(store, wallet.id) == Decimal("500")
    assert store.get_transaction(result.transaction.id) is None


def test_income_increases_balance_and_drops_category(ledger):
    store, reconciler, a, _, food = ledger
    result = reconciler.create_transaction(
        type=TransactionType.INCOME, amount=Decimal("25"), date=DAY, category_id=food, wallet_id=a
    )
    assert _balance(store, a) == Decimal("125")
    assert result.transaction.category_id is None


def test_transaction_without_wallet_changes_no_balance(ledger):
    store, reconciler, a, b, food = ledger
    result = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food
    )
    assert result.deltas == ()
    assert _balance(store, a) == Decimal("100")
    assert _balance(store, b) == Decimal("50")


def test_wallet_switch_reverts_old_and_applies_new(ledger):
    """Expense of 30 moved from A (100) to B (50) yields A=130, B=20."""
    store, reconciler, a, b, food = ledger
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    assert _balance(store, a) == Decimal("70")

    reconciler.update_transaction(created.transaction, wallet_id=b)

    assert _balance(store, a) == Decimal("100")
    assert _balance(store, b) == Decimal("20")


def test_wallet_switch_with_new_amount(ledger):
    """The new wallet is charged the new amount, never a cross-wallet difference."""
    store, reconciler, a, b, food = ledger
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    reconciler.update_transaction(created.transaction.id, wallet_id=b, amount=Decimal("45"))

    assert _balance(store, a) == Decimal("100")
    assert _balance(store, b) == Decimal("5")


def test_same_wallet_amount_change(ledger):
    store, reconciler, a, _, food = ledger
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    result = reconciler.update_transaction(created.transaction.id, amount=Decimal("50"))

    assert _balance(store, a) == Decimal("50")
    assert [(d.wallet_id, d.amount) for d in result.deltas] == [(a, Decimal("-20"))]


def test_income_amount_change(ledger):
    store, reconciler, a, _, _ = ledger
    created = reconciler.create_transaction(
        type=TransactionType.INCOME, amount=Decimal("40"), date=DAY, wallet_id=a
    )
    reconciler.update_transaction(created.transaction.id, amount=Decimal("10"))
    assert _balance(store, a) == Decimal("110")


def test_noop_update_leaves_balances_unchanged(ledger):
    store, reconciler, a, b, food = ledger
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    txn = created.transaction

    result = reconciler.update_transaction(
        txn, amount=txn.amount, wallet_id=txn.wallet_id, category_id=txn.category_id, date=txn.date
    )

    assert result.deltas == ()
    assert _balance(store, a) == Decimal("70")
    assert _balance(store, b) == Decimal("50")


def test_detach_from_wallet_reverts_effect(ledger):
    store, reconciler, a, _, food = ledger
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    reconciler.update_transaction(created.transaction.id, wallet_id=None)
    assert _balance(store, a) == Decimal("100")


def test_update_uses_stored_record_not_stale_copy(ledger):
    """Reconciling against a stale copy would double-count the first edit."""
    store, reconciler, a, _, food = ledger
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    stale = created.transaction
    reconciler.update_transaction(stale, amount=Decimal("40"))
    reconciler.update_transaction(stale, amount=Decimal("50"))
    assert _balance(store, a) == Decimal("50")


def test_balance_conservation_over_random_mutations(ledger):
    """balance == opening + income - expense over the final transaction set."""
    store, reconciler, a, b, food = ledger
    opening = {a: Decimal("100"), b: Decimal("50")}
    rng = random.Random(7)

    for _ in range(200):
        existing = store.list_transactions()
        action = rng.choice(["create", "create", "update", "delete"]) if existing else "create"
        if action == "create":
            reconciler.create_transaction(
                type=rng.choice(list(TransactionType)),
                amount=Decimal(rng.randint(1, 500)),
                date=DAY,
                category_id=food,
                wallet_id=rng.choice([a, b, None]),
            )
        elif action == "update":
            reconciler.update_transaction(
                rng.choice(existing).id,
                amount=Decimal(rng.randint(1, 500)),
                wallet_id=rng.choice([a, b, None]),
            )
        else:
            reconciler.delete_transaction(rng.choice(existing).id)

    for wallet_id, start in opening.items():
        expected = start + sum(
            (t.signed_amount for t in store.list_transactions() if t.wallet_id == wallet_id),
            Decimal("0"),
        )
        assert _balance(store, wallet_id) == expected


def test_rejects_non_positive_amount(ledger):
    _, reconciler, a, _, food = ledger
    for amount in (Decimal("0"), Decimal("-5")):
        with pytest.raises(ValidationError, match="greater than zero"):
            reconciler.create_transaction(
                type=TransactionType.EXPENSE, amount=amount, date=DAY, category_id=food, wallet_id=a
            )


def test_rejects_sub_cent_amount(ledger):
    store, reconciler, a, _, food = ledger
    with pytest.raises(ValidationError, match="two decimal places"):
        reconciler.create_transaction(
            type=TransactionType.EXPENSE, amount=Decimal("0.004"), date=DAY, category_id=food, wallet_id=a
        )
    assert store.list_transactions() == []
    assert _balance(store, a) == Decimal("100")

    txn = reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("1.50"), date=DAY, category_id=food, wallet_id=a
    ).transaction
    with pytest.raises(ValidationError, match="two decimal places"):
        reconciler.update_transaction(txn.id, amount=Decimal("1.505"))
    assert store.get_transaction(txn.id).amount == Decimal("1.50")
    assert _balance(store, a) == Decimal("98.50")


def test_expense_requires_category(ledger):
    _, reconciler, a, _, _ = ledger
    with pytest.raises(ValidationError, match="require a category"):
        reconciler.create_transaction(type=TransactionType.EXPENSE, amount=Decimal("5"), date=DAY, wallet_id=a)


def test_unknown_references(ledger):
    store, reconciler, a, _, food = ledger
    with pytest.raises(NotFoundError):
        reconciler.create_transaction(
            type=TransactionType.EXPENSE, amount=Decimal("5"), date=DAY, category_id=food, wallet_id="nope"
        )
    with pytest.raises(NotFoundError):
        reconciler.create_transaction(
            type=TransactionType.EXPENSE, amount=Decimal("5"), date=DAY, category_id="nope", wallet_id=a
        )
    with pytest.raises(NotFoundError):
        reconciler.delete_transaction("nope")
    assert store.list_transactions() == []


def test_check_sufficient_funds(ledger):
    _, reconciler, a, _, _ = ledger
    assert reconciler.check_sufficient_funds(a, Decimal("100"))
    assert not reconciler.check_sufficient_funds(a, Decimal("100.01"))
    with pytest.raises(NotFoundError):
        reconciler.check_sufficient_funds("nope", Decimal("1"))


def test_insufficient_funds_warning(ledger):
    _, reconciler, a, _, _ = ledger
    assert reconciler.insufficient_funds_warning(a, Decimal("80")) is None
    warning = reconciler.insufficient_funds_warning(a, Decimal("130"))
    assert warning.balance == Decimal("100")
    assert warning.shortfall == Decimal("30")


def test_overdraft_is_allowed(ledger):
    """The funds check is advisory; the mutation itself never blocks."""
    store, reconciler, a, _, food = ledger
    reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("150"), date=DAY, category_id=food, wallet_id=a
    )
    assert _balance(store, a) == Decimal("-50")


def test_delete_wallet_blocked_by_transactions(ledger):
    store, reconciler, a, b, food = ledger
    reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("30"), date=DAY, category_id=food, wallet_id=a
    )
    reconciler.create_transaction(
        type=TransactionType.INCOME, amount=Decimal("20"), date=DAY, wallet_id=a
    )

    with pytest.raises(ConflictError) as excinfo:
        reconciler.delete_wallet(a)
    assert excinfo.value.transaction_count == 2
    assert excinfo.value.total_value == Decimal("50")
    assert store.get_wallet(a) is not None

    reconciler.delete_wallet(b)
    assert store.get_wallet(b) is None


def test_compute_update_deltas_drops_zero(make_transaction):
    original = make_transaction(30, wallet_id="a")
    assert compute_update_deltas(original, original) == []


def test_mutations_persist(reconciler, store, sample_wallets, sample_categories, reload_store):
    cash = sample_wallets["cash"]
    created = reconciler.create_transaction(
        type=TransactionType.EXPENSE,
        amount=Decimal("75000"),
        date=DAY,
        category_id=sample_categories["food"].id,
        wallet_id=cash.id,
        description="Lunch",
    )
    reconciler.update_transaction(created.transaction.id, wallet_id=sample_wallets["bank"].id)

    reloaded = reload_store()
    assert reloaded.get_wallet(cash.id).balance == Decimal("500000")
    assert reloaded.get_wallet(sample_wallets["bank"].id).balance == Decimal("1925000")
    stored = reloaded.get_transaction(created.transaction.id)
    assert stored.description == "Lunch"
    assert stored.wallet_id == sample_wallets["bank"].id


def test_persistence_failure_rolls_back_store(
    reconciler, store, temp_db, sample_wallets, sample_categories, monkeypatch, reload_store
):
    cash = sample_wallets["cash"]

    def fail(*args, **kwargs):
        raise PersistenceFailure("database is locked")

    monkeypatch.setattr(temp_db, "save_transaction_mutation", fail)

    with pytest.raises(PersistenceFailure):
        reconciler.create_transaction(
            type=TransactionType.EXPENSE,
            amount=Decimal("1000"),
            date=DAY,
            category_id=sample_categories["food"].id,
            wallet_id=cash.id,
        )

    assert store.list_transactions() == []
    assert store.get_wallet(cash.id).balance == Decimal("500000")
    monkeypatch.undo()
    assert reload_store().list_transactions() == []


def test_concurrent_mutations_are_serialized(ledger):
    store, reconciler, a, b, food = ledger

    def spend():
        for _ in range(50):
            reconciler.create_transaction(
                type=TransactionType.EXPENSE, amount=Decimal("1"), date=DAY, category_id=food, wallet_id=a
            )
            reconciler.create_transaction(
                type=TransactionType.INCOME, amount=Decimal("2"), date=DAY, wallet_id=b
            )

    threads = [threading.Thread(target=spend) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.list_transactions()) == 800
    assert _balance(store, a) == Decimal("100") - Decimal("400")
    assert _balance(store, b) == Decimal("50") + Decimal("800")
