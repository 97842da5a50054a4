import datetime

import pytest
from budget_tracker.aggregation import Period
from budget_tracker.models import Expense
from budget_tracker.storage import BudgetStorage, KeyValueStore
from budget_tracker.tracker import BudgetTracker, parse_int

JUNE = Period(2025, 6)


@pytest.fixture
def storage(tmp_path):
    return BudgetStorage(KeyValueStore(str(tmp_path / "budget_data.json")))


@pytest.fixture
def tracker(storage):
    return BudgetTracker(storage)


def _when(day):
    return datetime.datetime(2025, 6, day, 10, 0)


def test_new_tracker_starts_empty(tracker):
    assert tracker.budget == 0
    assert tracker.expenses == []


def test_add_expense_persists(tracker, storage):
    e = tracker.add_expense(30000, "Food", _when(10))
    assert tracker.expenses == [e]
    assert storage.load() == (0, [e])


def test_set_budget_persists(tracker, storage):
    tracker.set_budget(100000)
    assert BudgetTracker(storage).budget == 100000


@pytest.mark.parametrize("text, expected", [
    ("100", 100),
    ("-5", -5),
    ("+7", 7),
    ("0", 0),
    ("", None),
    (" 5", None),
    ("1.5", None),
    ("1_000", None),
    ("abc", None),
    (None, None),
])
def test_parse_int(text, expected):
    assert parse_int(text) == expected


def test_set_budget_from_text_ignores_garbage(tracker):
    assert tracker.set_budget_from_text("50000")
    assert not tracker.set_budget_from_text("fifty")
    assert tracker.budget == 50000


def test_save_expense_from_text_creates_and_edits(tracker, storage):
    created = tracker.save_expense_from_text("30000", "Food", _when(10))
    assert created is not None

    edited = tracker.save_expense_from_text("35000", "Groceries", _when(11), expense_id=created.id)
    assert edited.id == created.id
    assert tracker.expenses == [edited]
    assert storage.load()[1] == [edited]


def test_save_expense_from_text_invalid_amount_is_noop(tracker):
    created = tracker.save_expense_from_text("30000", "Food", _when(10))
    assert tracker.save_expense_from_text("lots", "Food", _when(10)) is None
    assert tracker.save_expense_from_text("1.5", "Food", _when(10), expense_id=created.id) is None
    assert tracker.expenses == [created]


def test_update_keeps_position(tracker):
    a = tracker.add_expense(1, "A", _when(1))
    b = tracker.add_expense(2, "B", _when(2))
    tracker.add_or_update_expense(a.replace(amount=10))
    assert [e.id for e in tracker.expenses] == [a.id, b.id]
    assert tracker.get_expense(a.id).amount == 10


def test_delete_expense(tracker, storage):
    a = tracker.add_expense(1, "A", _when(1))
    b = tracker.add_expense(2, "B", _when(2))
    assert tracker.delete_expense(a.id)
    assert not tracker.delete_expense(a.id)
    assert storage.load()[1] == [b]


def test_delete_expenses_at_uses_filtered_positions(tracker):
    may = tracker.add_expense(1, "A", datetime.datetime(2025, 5, 3))
    june_a = tracker.add_expense(2, "B", _when(2))
    june_b = tracker.add_expense(3, "C", _when(3))
    removed = tracker.delete_expenses_at(JUNE, [1, 9])
    assert removed == 1
    assert tracker.expenses == [may, june_a]
    assert june_b not in tracker.expenses


def test_reset_clears_everything(tracker, storage):
    tracker.set_budget(100000)
    tracker.add_expense(30000, "Food", _when(10))
    tracker.reset()
    assert (tracker.budget, tracker.expenses) == (0, [])
    assert storage.load() == (0, [])


def test_summary_scenarios(tracker):
    tracker.set_budget(100000)
    tracker.add_expense(30000, "Food", _when(10))
    s = tracker.summary(JUNE)
    assert (s.total, s.remaining, s.over_budget) == (30000, 70000, False)

    tracker.add_expense(80000, "Rent", _when(1))
    s = tracker.summary(JUNE)
    assert (s.total, s.remaining, s.over_budget) == (110000, -10000, True)
    assert s.category_totals == [("Food", 30000), ("Rent", 80000)]

    assert tracker.summary(Period(2025, 5)).total == 0


def test_failed_save_restores_state(tracker, storage, monkeypatch):
    kept = tracker.add_expense(1, "A", _when(1))

    def boom(budget, expenses):
        raise OSError("disk full")

    monkeypatch.setattr(storage, "save", boom)
    with pytest.raises(OSError):
        tracker.add_expense(2, "B", _when(2))
    with pytest.raises(OSError):
        tracker.set_budget(5)
    assert tracker.expenses == [kept]
    assert tracker.budget == 0


def test_reload_from_storage(tracker, storage):
    e = tracker.add_expense(1, "A", _when(1))
    other = BudgetTracker(storage)
    other.add_or_update_expense(Expense(id=e.id, amount=9, category="A", date=_when(1)))
    tracker.load()
    assert tracker.get_expense(e.id).amount == 9


def test_unstorable_category_does_not_raise(tracker, storage):
    kept = tracker.add_expense(1, "A", _when(1))
    tracker.add_expense(10, "Food \ud800", _when(2))
    assert storage.load() == (0, [kept])
