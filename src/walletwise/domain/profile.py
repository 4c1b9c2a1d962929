"""Profile domain service: the budget anchor and user preferences."""

from dataclasses import replace
from decimal import Decimal
from typing import Optional

import structlog

from walletwise.database.base import Database
from walletwise.domain.budget import validate_reset_day
from walletwise.domain.entities import PeriodType, Profile, WeekStart, fits_money_precision
from walletwise.domain.errors import ValidationError, too_precise_amount
from walletwise.domain.store import EntityStore

logger = structlog.get_logger(__name__)


class ProfileService:
    """Service for reading and editing the user's profile."""

    def __init__(self, store: EntityStore, db: Optional[Database] = None):
        self.store = store
        self.db = db

    def get_profile(self) -> Profile:
        return self.store.profile

    def update_profile(
        self,
        total_budget: Optional[Decimal] = None,
        reset_day: Optional[int] = None,
        period_type: Optional[PeriodType] = None,
        week_start: Optional[WeekStart] = None,
        currency: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> Profile:
        """Update profile fields. Only explicit edits change the total budget.

        Raises:
            ValidationError: If the total budget is negative or the reset day is invalid
        """
        changes = {}
        if total_budget is not None:
            if total_budget < 0:
                raise ValidationError(f"Total budget cannot be negative (got {total_budget})")
            if not fits_money_precision(total_budget):
                raise ValidationError(too_precise_amount("Total budget", total_budget))
            changes["total_budget"] = total_budget
        if reset_day is not None:
            changes["reset_day"] = validate_reset_day(reset_day)
        if period_type is not None:
            changes["period_type"] = PeriodType(period_type)
        if week_start is not None:
            changes["week_start"] = WeekStart(week_start)
        if currency is not None:
            changes["currency"] = currency.upper()
        if display_name is not None:
            changes["display_name"] = display_name

        with self.store.committing():
            updated = replace(self.store.profile, **changes)
            self.store.set_profile(updated)
            if self.db is not None:
                self.db.save_profile(updated)

        logger.debug("profile_updated", fields=sorted(changes))
        return updated

    def set_total_budget(self, total_budget: Decimal) -> Profile:
        return self.update_profile(total_budget=total_budget)

    def reset_account(self) -> None:
        """Remove every wallet, category and transaction and zero the budget."""
        with self.store.committing():
            self.store.clear()
            self.store.set_profile(replace(self.store.profile, total_budget=Decimal("0")))
            if self.db is not None:
                self.db.reset_user(self.store.user_id)

        logger.debug("account_reset", user_id=self.store.user_id)
