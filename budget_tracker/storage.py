"""
storage.py - local persistence for the budget and the expense list

Two layers:
 - KeyValueStore: a JSON object on disk used as a small key/value store
 - BudgetStorage: reads/writes the two keys ("budget", "expenses") the app uses

Decoding problems never surface to the caller: a corrupt file or an expense
array that does not decode falls back to empty data and is only logged.
"""

import json
import os
import shutil
import tempfile
from typing import Any, Dict, List, Optional, Tuple

from budget_tracker.log import get_logger
from budget_tracker.models import Expense, ExpenseDecodeError

# location of the JSON store (relative to the package)
DATA_FILE = os.path.join(os.path.dirname(__file__), "..", "data", "budget_data.json")

BUDGET_KEY = "budget"
EXPENSES_KEY = "expenses"

logger = get_logger(__name__)


class KeyValueStore:
    """
    JSON-file backed key/value store.

    The whole file is rewritten on every write (temp file + move), so a reader
    sees either the previous contents or the new ones.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = os.path.abspath(path or DATA_FILE)

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.warning("Could not read data file %s, treating it as empty", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Data file %s does not hold an object, treating it as empty", self.path)
            return {}
        return data

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def contains(self, key: str) -> bool:
        return key in self._read()

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set_many(self, values: Dict[str, Any]):
        """Update several keys in a single atomic write."""
        data = self._read()
        data.update(values)
        # serialize before touching the disk so an encoding error writes nothing
        payload = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")

        dirn = os.path.dirname(self.path)
        os.makedirs(dirn, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix="tmp_budget_", dir=dirn)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            shutil.move(tmp_path, self.path)
        except Exception:
            logger.exception("Failed to write data file %s", self.path)
            try:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
            except OSError:
                pass
            raise

    def set(self, key: str, value: Any):
        self.set_many({key: value})


def encode_expenses(expenses: List[Expense]) -> str:
    """Encode to JSON array text. Text that cannot be stored as UTF-8 raises UnicodeEncodeError."""
    text = json.dumps([e.to_dict() for e in expenses], ensure_ascii=False)
    text.encode("utf-8")
    return text


def decode_expenses(raw: Any) -> List[Expense]:
    """Decode the stored JSON array text. Raises ExpenseDecodeError on any problem."""
    if not isinstance(raw, str):
        raise ExpenseDecodeError("stored expenses are not JSON text")
    try:
        items = json.loads(raw)
    except ValueError as exc:
        raise ExpenseDecodeError("stored expenses are not valid JSON") from exc
    if not isinstance(items, list):
        raise ExpenseDecodeError("stored expenses are not a JSON array")
    return [Expense.from_dict(d) for d in items]


class BudgetStorage:
    """Load/save of (budget, expenses). Best-effort: bad data never raises."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store or KeyValueStore()

    def load(self) -> Tuple[int, List[Expense]]:
        """
        Return the last saved (budget, expenses), or (0, []) on first run.
        The budget is read on its own, so it survives a broken expense array.
        """
        budget = self.store.get(BUDGET_KEY, 0)
        if isinstance(budget, bool) or not isinstance(budget, int):
            budget = 0

        expenses: List[Expense] = []
        raw = self.store.get(EXPENSES_KEY)
        if raw is not None:
            try:
                expenses = decode_expenses(raw)
            except ExpenseDecodeError as exc:
                logger.warning("Discarding stored expenses that failed to decode: %s", exc)
                expenses = []

        logger.info("Loaded data from %s (budget=%d, expenses=%d)", self.store.path, budget, len(expenses))
        return budget, expenses

    def save(self, budget: int, expenses: List[Expense]):
        """
        Overwrite both stored values. If the expenses cannot be encoded nothing
        is written and the previous state stays in place.
        """
        try:
            encoded = encode_expenses(expenses)
        except (TypeError, ValueError, AttributeError):
            logger.warning("Could not encode expenses, skipping save", exc_info=True)
            return
        if isinstance(budget, bool) or not isinstance(budget, int):
            logger.warning("Budget %r is not an integer, skipping save", budget)
            return
        logger.info("Saving data to %s (expenses=%d)", self.store.path, len(expenses))
        self.store.set_many({BUDGET_KEY: budget, EXPENSES_KEY: encoded})

    def reset(self):
        self.save(0, [])
