"""
models.py - Data model definitions

This file defines the Expense dataclass used across the tracker and UI.
Expenses are serialized to/from simple dicts so they can be persisted as a
JSON array under the "expenses" key of the data store.
"""

import dataclasses
import datetime
import uuid
from dataclasses import dataclass
from typing import Any, Dict


class ExpenseDecodeError(ValueError):
    """Raised when a stored expense dict cannot be turned back into an Expense."""


def _parse_timestamp(value: str) -> datetime.datetime:
    # fromisoformat only learned the "Z" suffix in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(value)


@dataclass(frozen=True)
class Expense:
    """
    Represents a single recorded expense.

    Fields:
      - id: UUID string assigned once at creation; used for lookup/update/delete
      - amount: integer amount in currency units (no validation, may be <= 0)
      - category: free-text label, kept exactly as typed ("Food" != "food")
      - date: full datetime; only its calendar year/month matter for aggregation

    Two expenses are equal iff every field, id included, is equal.
    """
    id: str
    amount: int
    category: str
    date: datetime.datetime

    @staticmethod
    def create(amount: int, category: str, date: datetime.datetime) -> "Expense":
        """Build a new expense with a fresh id."""
        return Expense(id=str(uuid.uuid4()), amount=amount, category=category, date=date)

    def replace(self, **changes) -> "Expense":
        """Return an edited copy; the id is always carried over."""
        changes.pop("id", None)
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a plain dict suitable for JSON serialization.
        The date is written as an ISO-8601 timestamp.
        """
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "date": self.date.isoformat(),
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Expense":
        """
        Construct an Expense from a dict (inverse of to_dict).

        Unlike a lenient loader this does not fill in defaults: a record that is
        missing a field or carries a wrongly typed value raises
        ExpenseDecodeError, so the caller can discard the whole collection.
        """
        if not isinstance(d, dict):
            raise ExpenseDecodeError(f"expected an object, got {type(d).__name__}")
        missing = [k for k in ("id", "amount", "category", "date") if k not in d]
        if missing:
            raise ExpenseDecodeError(f"missing fields: {', '.join(missing)}")

        raw_id = d["id"]
        if not isinstance(raw_id, str):
            raise ExpenseDecodeError("id must be a string")
        try:
            uuid.UUID(raw_id)
        except ValueError as exc:
            raise ExpenseDecodeError(f"invalid id {raw_id!r}") from exc

        amount = d["amount"]
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ExpenseDecodeError(f"amount must be an integer, got {amount!r}")

        category = d["category"]
        if not isinstance(category, str):
            raise ExpenseDecodeError("category must be a string")

        raw_date = d["date"]
        if not isinstance(raw_date, str):
            raise ExpenseDecodeError("date must be an ISO-8601 string")
        try:
            date = _parse_timestamp(raw_date)
        except ValueError as exc:
            raise ExpenseDecodeError(f"invalid date {raw_date!r}") from exc

        return Expense(id=raw_id, amount=amount, category=category, date=date)
