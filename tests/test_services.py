"""Tests for wallet, category, profile and report services."""

from datetime import date
from decimal import Decimal

import pytest

from walletwise.domain.entities import Granularity, TransactionType, WalletType, WeekStart
from walletwise.domain.errors import ConflictError, NotFoundError, ValidationError
from walletwise.domain.wallet import MAX_WALLETS


# Wallets

def test_create_wallet(wallet_service, reload_store):
    wallet = wallet_service.create_wallet(name="  GoPay ", balance=Decimal("150000"), type=WalletType.EWALLET)

    assert wallet.name == "GoPay"
    assert wallet.type == WalletType.EWALLET
    assert wallet.color.startswith("#")
    stored = reload_store().get_wallet(wallet.id)
    assert stored.name == "GoPay"
    assert stored.balance == Decimal("150000")


def test_create_wallet_rejects_duplicate_and_empty_names(wallet_service, sample_wallets):
    with pytest.raises(ValidationError, match="already exists"):
        wallet_service.create_wallet(name="cash")
    with pytest.raises(ValidationError, match="cannot be empty"):
        wallet_service.create_wallet(name="   ")


def test_wallet_limit(wallet_service):
    for i in range(MAX_WALLETS):
        wallet_service.create_wallet(name=f"Wallet {i}")
    with pytest.raises(ValidationError, match=f"more than {MAX_WALLETS}"):
        wallet_service.create_wallet(name="One too many")


def test_find_wallet_by_name_id_and_prefix(wallet_service, sample_wallets):
    cash = sample_wallets["cash"]
    assert wallet_service.find_wallet("CASH") == cash
    assert wallet_service.find_wallet(cash.id) == cash
    assert wallet_service.find_wallet("does not exist") is None


def test_update_wallet_keeps_balance(wallet_service, sample_wallets, reload_store):
    cash = sample_wallets["cash"]
    updated = wallet_service.update_wallet(cash.id, name="Pocket", type=WalletType.SAVINGS, color="#123456")

    assert updated.balance == cash.balance
    stored = reload_store().get_wallet(cash.id)
    assert (stored.name, stored.type, stored.color) == ("Pocket", WalletType.SAVINGS, "#123456")


def test_set_balance_reanchors(wallet_service, reconciler, sample_wallets, sample_categories, store):
    cash = sample_wallets["cash"]
    reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("100000"), date=date(2024, 3, 1),
        category_id=sample_categories["food"].id, wallet_id=cash.id,
    )
    wallet_service.set_balance(cash.id, Decimal("1000000"))
    reconciler.create_transaction(
        type=TransactionType.EXPENSE, amount=Decimal("50000"), date=date(2024, 3, 2),
        category_id=sample_categories["food"].id, wallet_id=cash.id,
    )
    assert store.get_wallet(cash.id).balance == Decimal("950000")


def test_wallet_balance_rejects_sub_cent_values(wallet_service, sample_wallets, reload_store):
    with pytest.raises(ValidationError, match="two decimal places"):
        wallet_service.create_wallet(name="Coins", balance=Decimal("10.005"))
    with pytest.raises(ValidationError, match="two decimal places"):
        wallet_service.set_balance(sample_wallets["cash"].id, Decimal("0.004"))

    store = reload_store()
    assert store.get_wallet(sample_wallets["cash"].id).balance == Decimal("500000")
    assert wallet_service.find_wallet("Coins") is None
    assert wallet_service.set_balance(sample_wallets["cash"].id, Decimal("12.500")).balance == Decimal("12.5")


def test_delete_wallet(wallet_service, sample_wallets, reload_store):
    wallet_service.delete_wallet(sample_wallets["cash"].id)
    assert reload_store().get_wallet(sample_wallets["cash"].id) is None

    with pytest.raises(NotFoundError):
        wallet_service.delete_wallet(sample_wallets["cash"].id)


# Categories

def test_create_category_validates_budget(category_service):
    with pytest.raises(ValidationError, match="cannot be negative"):
        category_service.create_category(name="Bad", monthly_budget=Decimal("-1"))

    with pytest.raises(ValidationError, match="two decimal places"):
        category_service.create_category(name="Fine", monthly_budget=Decimal("100.001"))

    zero = category_service.create_category(name="Zero", monthly_budget=Decimal("0"))
    assert not zero.has_budget


def test_create_default_categories_is_idempotent(category_service):
    created = category_service.create_default_categories()
    assert len(created) == 6
    assert category_service.create_default_categories() == []


def test_update_category_budget(category_service, sample_categories, reload_store):
    food = sample_categories["food"]
    category_service.update_category(food.id, monthly_budget=Decimal("750000"))
    assert reload_store().get_category(food.id).monthly_budget == Decimal("750000")

    category_service.update_category(food.id, monthly_budget=None)
    assert reload_store().get_category(food.id).monthly_budget is None


def test_update_category_rejects_taken_name(category_service, sample_categories):
    with pytest.raises(ValidationError, match="already exists"):
        category_service.update_category(sample_categories["food"].id, name="transport")


def test_preview_budget(category_service, profile_service, sample_categories):
    profile_service.set_total_budget(Decimal("2000000"))

    new = category_service.preview_budget(Decimal("600000"))
    assert new.projected_total == Decimal("2100000")
    assert new.would_exceed

    edit = category_service.preview_budget(Decimal("600000"), category_id=sample_categories["food"].id)
    assert edit.projected_total == Decimal("1100000")
    assert not edit.would_exceed


@pytest.fixture
def food_expense(reconciler, sample_wallets, sample_categories):
    return reconciler.create_transaction(
        type=TransactionType.EXPENSE,
        amount=Decimal("40000"),
        date=date(2024, 3, 3),
        category_id=sample_categories["food"].id,
        wallet_id=sample_wallets["cash"].id,
    ).transaction


def test_delete_category_in_use_requires_decision(category_service, sample_categories, food_expense, store):
    with pytest.raises(ConflictError) as excinfo:
        category_service.delete_category(sample_categories["food"].id)
    assert excinfo.value.transaction_count == 1
    assert excinfo.value.total_value == Decimal("40000")
    assert store.get_category(sample_categories["food"].id) is not None


def test_delete_category_reassigns(category_service, sample_categories, food_expense, reload_store):
    moved = category_service.delete_category(
        sample_categories["food"].id, reassign_to=sample_categories["gifts"].id
    )
    assert moved == 1

    reloaded = reload_store()
    assert reloaded.get_category(sample_categories["food"].id) is None
    assert reloaded.get_transaction(food_expense.id).category_id == sample_categories["gifts"].id


def test_delete_category_detaches(category_service, sample_categories, food_expense, reload_store, store):
    category_service.delete_category(sample_categories["food"].id, detach=True)

    assert store.get_transaction(food_expense.id).category_id is None
    assert reload_store().get_transaction(food_expense.id).category_id is None


def test_delete_category_rejects_conflicting_options(category_service, sample_categories):
    food = sample_categories["food"].id
    with pytest.raises(ValidationError):
        category_service.delete_category(food, reassign_to=sample_categories["gifts"].id, detach=True)
    with pytest.raises(ValidationError):
        category_service.delete_category(food, reassign_to=food)


def test_delete_unused_category(category_service, sample_categories, reload_store):
    assert category_service.delete_category(sample_categories["gifts"].id) == 0
    assert reload_store().get_category(sample_categories["gifts"].id) is None


# Profile

def test_update_profile(profile_service, reload_store):
    profile_service.update_profile(
        total_budget=Decimal("3000000"), reset_day=25, week_start=WeekStart.SUNDAY, currency="usd"
    )
    profile = reload_store().profile
    assert profile.total_budget == Decimal("3000000")
    assert profile.reset_day == 25
    assert profile.week_start == WeekStart.SUNDAY
    assert profile.currency == "USD"


def test_update_profile_validation(profile_service):
    with pytest.raises(ValidationError):
        profile_service.set_total_budget(Decimal("-1"))
    with pytest.raises(ValidationError, match="two decimal places"):
        profile_service.set_total_budget(Decimal("0.004"))
    with pytest.raises(ValidationError):
        profile_service.update_profile(reset_day=40)


def test_reset_account(profile_service, food_expense, reload_store, store):
    profile_service.update_profile(total_budget=Decimal("1000000"), reset_day=25)
    profile_service.reset_account()

    assert store.list_wallets() == []
    assert store.list_transactions() == []
    reloaded = reload_store()
    assert reloaded.list_wallets() == []
    assert reloaded.list_categories() == []
    assert reloaded.list_transactions() == []
    assert reloaded.profile.total_budget == Decimal("0")
    assert reloaded.profile.reset_day == 25


# Reports

def test_budget_overview(report_service, profile_service, food_expense, sample_categories):
    profile_service.set_total_budget(Decimal("2000000"))
    overview = report_service.budget_overview(date(2024, 3, 20))

    assert overview.period.start == date(2024, 3, 1)
    assert overview.spent == Decimal("40000")
    assert overview.used_percent == 2
    assert overview.allocation.allocated_total == Decimal("1500000")
    statuses = {s.category_id: s for s in overview.category_statuses}
    assert statuses[sample_categories["food"].id].spent == Decimal("40000")
    assert statuses[sample_categories["gifts"].id].level is None


def test_total_budget_falls_back_to_derived(report_service, food_expense):
    """No stored budget: balances plus spending minus income."""
    assert report_service.total_budget() == Decimal("2500000")


def test_period_report(report_service, food_expense):
    report = report_service.period_report(Granularity.WEEKLY, date(2024, 3, 3))

    assert report.period.start == date(2024, 2, 26)
    assert report.total_outflow == Decimal("40000")
    assert report.categories[0].name == "Food"
    assert len(report.series) == 7
    assert report.health_score == 50
    assert report.top_merchant == ("Food", Decimal("40000"))


def test_balance_history_and_trend(report_service, food_expense):
    assert report_service.balance_history(3) == [Decimal("2500000")] * 2 + [Decimal("2460000")]
    assert report_service.trend().net == Decimal("-40000")
