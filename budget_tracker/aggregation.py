"""
aggregation.py - derived views over the expense collection

Everything here is a pure function of (budget, expenses, period): no I/O, no
mutation of the inputs. The tracker and the UI call these to build the
monthly summary, the expense list and the category chart.
"""

import datetime
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from budget_tracker.models import Expense


class Period(NamedTuple):
    """A calendar (year, month) pair selected for display."""
    year: int
    month: int


@dataclass
class MonthlySummary:
    """Everything the main view shows for one period."""
    period: Period
    budget: int
    expenses: List[Expense] = field(default_factory=list)
    total: int = 0
    remaining: int = 0
    over_budget: bool = False
    category_totals: List[Tuple[str, int]] = field(default_factory=list)


def current_period(today: Optional[datetime.date] = None) -> Period:
    today = today or datetime.date.today()
    return Period(today.year, today.month)


def filter_by_period(expenses: Iterable[Expense], period: Period) -> List[Expense]:
    """
    Keep the expenses whose date falls in the period's calendar year and month.

    Matching uses the date's own year/month fields: a naive datetime is taken as
    local wall-clock time, an aware one in its stored offset. Input order is kept.
    """
    year, month = period
    return [e for e in expenses if e.date.year == year and e.date.month == month]


def total_amount(expenses: Iterable[Expense]) -> int:
    return sum(e.amount for e in expenses)


def remaining_budget(budget: int, total: int) -> int:
    return budget - total


def is_over_budget(remaining: int) -> bool:
    return remaining < 0


def category_totals(expenses: Iterable[Expense]) -> Dict[str, int]:
    """Sum amounts per category; only categories that occur get a key."""
    totals: Dict[str, int] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0) + e.amount
    return totals


def sorted_category_totals(totals: Dict[str, int]) -> List[Tuple[str, int]]:
    """(category, total) pairs in ascending category-name order, for stable charts."""
    return sorted(totals.items(), key=lambda item: item[0])


def summarize(budget: int, expenses: Sequence[Expense], period: Period) -> MonthlySummary:
    filtered = filter_by_period(expenses, period)
    total = total_amount(filtered)
    remaining = remaining_budget(budget, total)
    return MonthlySummary(
        period=period,
        budget=budget,
        expenses=filtered,
        total=total,
        remaining=remaining,
        over_budget=is_over_budget(remaining),
        category_totals=sorted_category_totals(category_totals(filtered)),
    )
