"""Category domain service."""

import uuid
from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any, Optional

import structlog

from walletwise.database.base import Database
from walletwise.domain.budget import compute_projected_allocation, effective_total_budget
from walletwise.domain.entities import Category, ProjectedAllocation, fits_money_precision
from walletwise.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_delete_blocked,
    category_not_found,
    too_precise_amount,
)
from walletwise.domain.store import EntityStore

logger = structlog.get_logger(__name__)

_UNSET: Any = object()

DEFAULT_CATEGORIES = (
    ("Food & Drinks", "utensils", "#FF9500"),
    ("Transport", "car", "#007AFF"),
    ("Shopping", "shopping-bag", "#FF2D55"),
    ("Bills", "receipt", "#5856D6"),
    ("Entertainment", "film", "#AF52DE"),
    ("Health", "heart", "#34C759"),
)


class CategoryService:
    """Service for managing categories and their monthly budgets."""

    def __init__(self, store: EntityStore, db: Optional[Database] = None):
        """Initialize category service.

        Args:
            store: Session Entity Store
            db: Optional persistence collaborator
        """
        self.store = store
        self.db = db

    def create_category(
        self,
        name: str,
        icon: str = "tag",
        color: str = "#8E8E93",
        monthly_budget: Optional[Decimal] = None,
    ) -> Category:
        """Create a category.

        Args:
            name: Category name
            icon: Icon name
            color: Display color
            monthly_budget: Optional spending limit; None tracks spending only

        Returns:
            Created category

        Raises:
            ValidationError: If the name is empty or taken, or the budget is negative
        """
        name = self._clean_name(name)
        self._validate_budget(monthly_budget)

        with self.store.committing():
            self._check_unique_name(name)
            category = Category(
                id=uuid.uuid4().hex,
                user_id=self.store.user_id,
                name=name,
                icon=icon,
                color=color,
                monthly_budget=monthly_budget,
                created_at=datetime.now(UTC),
            )
            self.store.put_category(category)
            if self.db is not None:
                self.db.save_category(category)

        logger.debug("category_created", category_id=category.id)
        return category

    def create_default_categories(self) -> list[Category]:
        """Create the starter categories that don't exist yet."""
        existing = {c.name.lower() for c in self.store.list_categories()}
        return [
            self.create_category(name=name, icon=icon, color=color)
            for name, icon, color in DEFAULT_CATEGORIES
            if name.lower() not in existing
        ]

    def get_category(self, category_id: str) -> Optional[Category]:
        return self.store.get_category(category_id)

    def require_category(self, category_id: str) -> Category:
        category = self.store.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def find_category(self, identifier: str) -> Optional[Category]:
        """Find a category by ID, ID prefix, or case-insensitive name."""
        category = self.store.get_category(identifier)
        if category is not None:
            return category
        lowered = identifier.strip().lower()
        for category in self.store.list_categories():
            if category.name.lower() == lowered:
                return category
        prefixed = [c for c in self.store.list_categories() if c.id.startswith(identifier)]
        return prefixed[0] if len(prefixed) == 1 else None

    def list_categories(self) -> list[Category]:
        return self.store.list_categories()

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        monthly_budget: Any = _UNSET,
    ) -> Category:
        """Update category fields. Pass ``monthly_budget=None`` to remove the limit.

        Raises:
            NotFoundError: If the category doesn't exist
            ValidationError: If the name is empty or taken, or the budget is negative
        """
        with self.store.committing():
            category = self.require_category(category_id)
            changes: dict[str, Any] = {}
            if name is not None:
                name = self._clean_name(name)
                self._check_unique_name(name, exclude_id=category_id)
                changes["name"] = name
            if icon is not None:
                changes["icon"] = icon
            if color is not None:
                changes["color"] = color
            if monthly_budget is not _UNSET:
                self._validate_budget(monthly_budget)
                changes["monthly_budget"] = monthly_budget

            updated = replace(category, **changes)
            self.store.put_category(updated)
            if self.db is not None:
                self.db.save_category(updated)
        return updated

    def preview_budget(self, candidate_budget: Optional[Decimal], category_id: Optional[str] = None) -> ProjectedAllocation:
        """Preview the allocation impact of a new or edited category budget.

        Args:
            candidate_budget: Budget the category would get
            category_id: Category being edited, or None for a new category
        """
        others = [c for c in self.store.list_categories() if c.id != category_id]
        total_budget = effective_total_budget(
            self.store.profile, self.store.list_wallets(), self.store.list_transactions()
        )
        return compute_projected_allocation(others, candidate_budget, total_budget)

    def delete_category(
        self,
        category_id: str,
        reassign_to: Optional[str] = None,
        detach: bool = False,
    ) -> int:
        """Delete a category.

        Transactions still linked to the category must be handled explicitly:
        either moved to ``reassign_to`` or detached (category cleared). The
        remediation and the deletion are committed together.

        Args:
            category_id: Category to delete
            reassign_to: Category that receives the linked transactions
            detach: Clear the category of linked transactions instead

        Returns:
            Number of transactions reassigned or detached

        Raises:
            NotFoundError: If either category doesn't exist
            ValidationError: If both remediations are requested or reassign_to is the deleted category
            ConflictError: If linked transactions exist and no remediation was requested
        """
        if reassign_to is not None and detach:
            raise ValidationError("Cannot both reassign and detach transactions")
        if reassign_to == category_id:
            raise ValidationError("Cannot reassign transactions to the category being deleted")

        with self.store.committing():
            self.require_category(category_id)
            if reassign_to is not None:
                self.require_category(reassign_to)

            linked = self.store.transactions_for_category(category_id)
            if linked and reassign_to is None and not detach:
                total = sum((t.amount for t in linked), Decimal("0"))
                raise ConflictError(
                    category_delete_blocked(category_id, len(linked), total),
                    transaction_count=len(linked),
                    total_value=total,
                )

            moved = [replace(t, category_id=reassign_to) for t in linked]
            for txn in moved:
                self.store.put_transaction(txn)
            self.store.remove_category(category_id)
            if self.db is not None:
                self.db.delete_category(self.store.user_id, category_id, reassign_to)

        logger.debug("category_deleted", category_id=category_id, moved=len(moved))
        return len(moved)

    def _clean_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValidationError("Category name cannot be empty")
        return name

    def _validate_budget(self, monthly_budget: Optional[Decimal]) -> None:
        if monthly_budget is not None and monthly_budget < 0:
            raise ValidationError(f"Monthly budget cannot be negative (got {monthly_budget})")
        if monthly_budget is not None and not fits_money_precision(monthly_budget):
            raise ValidationError(too_precise_amount("Monthly budget", monthly_budget))

    def _check_unique_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        for category in self.store.list_categories():
            if category.id != exclude_id and category.name.lower() == name.lower():
                raise ValidationError(f"Category with name '{name}' already exists")
