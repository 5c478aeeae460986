"""
Per-user generation credits.

The balance lives in the user_credits table. Checking and deducting are two
separate read-then-write round trips; there is no atomic decrement, so two
concurrent generations for the same user can both pass the check before
either deducts.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from design_studio.core.config import settings
from design_studio.core.database import DatabaseManager
from design_studio.core.errors import InsufficientCreditsError
from design_studio.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class CreditCheck:
    has_credits: bool
    balance: int
    credits_needed: int


class CreditLedger:
    """Credit check / deduct over the Supabase data store."""

    def __init__(self, db=DatabaseManager, free_monthly_credits: int = None, clock=None):
        self.db = db
        self.free_monthly_credits = (
            free_monthly_credits if free_monthly_credits is not None else settings.FREE_MONTHLY_CREDITS
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _next_reset(self, now: datetime) -> datetime:
        return add_one_month(now)

    def _current_balance(self, user_id: str) -> int:
        """Load the balance, creating the record or granting the monthly allowance as needed."""
        now = self._clock()
        record = self.db.get_credit_record(user_id)

        if record is None:
            self.db.create_credit_record(user_id, self.free_monthly_credits, self._next_reset(now))
            return self.free_monthly_credits

        balance = int(record.get("balance") or 0)
        reset_at = _parse_timestamp(record.get("free_credits_reset_at"))

        if reset_at is not None and reset_at <= now:
            balance += self.free_monthly_credits
            self.db.update_credit_balance(user_id, balance, self._next_reset(now))
            self.db.log_credit_transaction(
                user_id, self.free_monthly_credits, "monthly_reset", "Monthly free credits reset"
            )
            logger.info(f"Granted monthly credits to user {user_id}")

        return balance

    def check(self, user_id: str, credits_needed: int = 1) -> CreditCheck:
        balance = self._current_balance(user_id)
        return CreditCheck(
            has_credits=balance >= credits_needed,
            balance=balance,
            credits_needed=credits_needed,
        )

    def deduct(self, user_id: str, credits_needed: int = 1, description: str = "AI design generation") -> int:
        """
        Deduct credits; returns the new balance.

        Raises:
            InsufficientCreditsError: If the balance no longer covers the charge
        """
        balance = self._current_balance(user_id)
        if balance < credits_needed:
            raise InsufficientCreditsError(balance, credits_needed)

        new_balance = balance - credits_needed
        self.db.update_credit_balance(user_id, new_balance)
        self.db.log_credit_transaction(user_id, -credits_needed, "usage", description)
        self.db.log_usage(user_id, "ai_generation")

        logger.info(f"Deducted {credits_needed} credit(s) from user {user_id}, balance {new_balance}")
        return new_balance


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def add_one_month(moment: datetime) -> datetime:
    """Same day next month, clamped to the month's last day."""
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
