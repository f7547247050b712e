from __future__ import annotations

from decimal import Decimal

from domain.models import ZERO
from domain.schemas import Allowance


def allowance(remaining: Decimal, days_remaining: int, todays_expenses: Decimal = ZERO) -> Allowance:
    """Split the balance over the remaining days.

    ``remaining`` is the live balance, today's expenses already deducted.
    Today's share is taken from the balance as it stood when the day began,
    so spending during the day eats into today's share instead of shrinking
    it. On the last day that whole balance belongs to today. Tomorrow's
    figure leaves today out of the denominator and uses the live balance,
    previewing the split once today's spending has rolled over.
    """
    opening = remaining + todays_expenses
    if days_remaining <= 1:
        daily = opening
    else:
        daily = opening / days_remaining

    if days_remaining > 1:
        tomorrow = remaining / max(1, days_remaining - 1)
    else:
        tomorrow = ZERO

    return Allowance(
        daily_allowance=daily,
        today_allowance=max(ZERO, daily - todays_expenses),
        tomorrow_allowance=tomorrow,
        is_over_budget=remaining < 0,
        is_today_depleted=todays_expenses >= daily,
    )
