"""
tracker.py - application state and mutation rules

Responsibilities:
 - keep the budget and the in-memory list of Expense objects
 - persist after every change (all changes go through _mutate)
 - provide helper APIs consumed by the UI:
     set_budget / set_budget_from_text, add_or_update_expense,
     save_expense_from_text, delete_expense, delete_expenses_at,
     reset, summary(period)
"""

import datetime
import re
from typing import Callable, Iterable, List, Optional

from budget_tracker import aggregation
from budget_tracker.aggregation import MonthlySummary, Period
from budget_tracker.log import get_logger
from budget_tracker.models import Expense
from budget_tracker.storage import BudgetStorage

# what a number-pad text field may contain: optional sign, ASCII digits
_INT_RE = re.compile(r"[+-]?[0-9]+")

logger = get_logger(__name__)


def parse_int(text: Optional[str]) -> Optional[int]:
    """Parse user-entered integer text, or return None when it is not one."""
    if text is None or not _INT_RE.fullmatch(text):
        return None
    return int(text)


class BudgetTracker:
    """
    Single-instance style tracker object. The UI creates one BudgetTracker()
    per run and uses its methods to read/write data.
    """

    def __init__(self, storage: Optional[BudgetStorage] = None):
        self.storage = storage or BudgetStorage()
        self.budget: int = 0
        self.expenses: List[Expense] = []
        self.load()

    def load(self):
        """Replace in-memory state with what is persisted."""
        self.budget, self.expenses = self.storage.load()

    def _mutate(self, change: Callable[[], None]):
        """
        Apply a state change and persist it. If saving raises, the previous
        budget and expense list are restored before the error propagates.
        """
        prev_budget, prev_expenses = self.budget, list(self.expenses)
        change()
        try:
            self.storage.save(self.budget, self.expenses)
        except Exception:
            logger.exception("Error saving after change, restoring previous state")
            self.budget, self.expenses = prev_budget, prev_expenses
            raise

    # -----------------------
    # Budget
    # -----------------------
    def set_budget(self, value: int):
        def change():
            self.budget = value
        self._mutate(change)

    def set_budget_from_text(self, text: str) -> bool:
        """Budget form submit. Text that is not an integer leaves the budget unchanged."""
        value = parse_int(text)
        if value is None:
            return False
        self.set_budget(value)
        return True

    # -----------------------
    # Expenses
    # -----------------------
    def get_expense(self, expense_id: str) -> Optional[Expense]:
        return next((e for e in self.expenses if e.id == expense_id), None)

    def add_or_update_expense(self, expense: Expense):
        """Replace the expense with the same id in place, or append a new one."""
        def change():
            for i, e in enumerate(self.expenses):
                if e.id == expense.id:
                    self.expenses[i] = expense
                    return
            self.expenses.append(expense)
        self._mutate(change)

    def add_expense(self, amount: int, category: str, date: datetime.datetime) -> Expense:
        expense = Expense.create(amount=amount, category=category, date=date)
        self.add_or_update_expense(expense)
        return expense

    def save_expense_from_text(
        self,
        amount_text: str,
        category: str,
        date: datetime.datetime,
        expense_id: Optional[str] = None,
    ) -> Optional[Expense]:
        """
        Expense form submit. When expense_id is given the record keeps that id
        (edit), otherwise a new one is created. Returns None and changes nothing
        when the amount text is not an integer.
        """
        amount = parse_int(amount_text)
        if amount is None:
            return None
        if expense_id is None:
            expense = Expense.create(amount=amount, category=category, date=date)
        else:
            expense = Expense(id=expense_id, amount=amount, category=category, date=date)
        self.add_or_update_expense(expense)
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        """Remove expense by id. Returns True if deleted, False if not found."""
        if self.get_expense(expense_id) is None:
            logger.info("Expense id=%s not found", expense_id)
            return False

        def change():
            self.expenses = [e for e in self.expenses if e.id != expense_id]
        self._mutate(change)
        logger.info("Deleted expense id=%s. Remaining expenses=%d.", expense_id, len(self.expenses))
        return True

    def delete_expenses_at(self, period: Period, offsets: Iterable[int]) -> int:
        """
        Delete by row positions in the period's filtered list (the order the
        list view shows). Out-of-range offsets are ignored. Returns how many
        expenses were removed.
        """
        filtered = aggregation.filter_by_period(self.expenses, period)
        doomed = {filtered[i].id for i in set(offsets) if 0 <= i < len(filtered)}
        if not doomed:
            return 0

        def change():
            self.expenses = [e for e in self.expenses if e.id not in doomed]
        self._mutate(change)
        return len(doomed)

    def reset(self):
        """Clear budget and expenses, and persist the cleared state."""
        def change():
            self.budget = 0
            self.expenses = []
        self._mutate(change)

    # -----------------------
    # Views
    # -----------------------
    def list_expenses(self, period: Optional[Period] = None) -> List[Expense]:
        if period is None:
            return list(self.expenses)
        return aggregation.filter_by_period(self.expenses, period)

    def summary(self, period: Period) -> MonthlySummary:
        return aggregation.summarize(self.budget, self.expenses, period)
