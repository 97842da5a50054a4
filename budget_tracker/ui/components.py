"""
components.py - reusable Streamlit components / forms / displays

This module contains pure-UI helpers used by the dashboard:
 - display_summary(summary)
 - display_budget_form(current_budget, on_submit)
 - display_expense_form(on_submit, expense_to_edit)
 - display_expense_list / display_category_chart
 - display_manage_expenses(tracker, period)

Numeric fields are plain text inputs. Text that is not an integer is passed
through to the tracker, which ignores it; the forms show no validation errors.
"""

import datetime
import time
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Callable, List, Optional, Tuple

import altair as alt
import pandas as pd
import streamlit as st

from budget_tracker.aggregation import MonthlySummary, Period
from budget_tracker.models import Expense

PALETTE = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf"
]


# Trigger a Streamlit rerun in a way compatible with multiple Streamlit versions.
def _trigger_rerun():
    if hasattr(st, "rerun"):
        st.rerun()
        return
    if hasattr(st, "experimental_rerun"):
        st.experimental_rerun()
        return
    # Last resort: mutate query params to force a rerun
    st.query_params["_rerun"] = str(int(time.time()))


@dataclass
class ExpenseInput:
    """Lightweight container passed to the on_submit callback."""
    amount_text: str
    category: str
    date: datetime.datetime


def _format_amount(value: int) -> str:
    return f"{value:,}"


def save_or_report(action: Callable[[], Any]) -> Any:
    """Run a tracker change. A storage error is shown on the page instead of a traceback."""
    try:
        return action()
    except OSError as exc:
        st.error(f"Could not save changes: {exc}")
        return None


def _to_datetime(day: datetime.date, time_of_day: Optional[datetime.time] = None) -> datetime.datetime:
    # date_input only yields a date; keep a time-of-day so the stored value is a full timestamp
    if time_of_day is None:
        time_of_day = datetime.datetime.now().time().replace(microsecond=0)
    return datetime.datetime.combine(day, time_of_day)


def display_summary(summary: MonthlySummary):
    """Budget, total spent, remaining budget and the over-budget warning."""
    st.header(f"{summary.period.year}-{summary.period.month:02d}")
    cols = st.columns(3)
    if summary.budget > 0:
        cols[0].metric("Budget", _format_amount(summary.budget))
    cols[1].metric("Total spent", _format_amount(summary.total))
    if summary.remaining < 0:
        # a negative delta renders red
        cols[2].metric("Remaining", _format_amount(summary.remaining),
                       delta=_format_amount(summary.remaining), delta_color="normal")
    else:
        cols[2].metric("Remaining", _format_amount(summary.remaining))
    if summary.over_budget:
        st.error("You are over budget!")


def display_budget_form(current_budget: int, on_submit: Callable[[str], None]):
    """
    Display the 'Set Budget' form, prefilled with the current value.
    on_submit receives the raw text.
    """
    st.header("Set Budget")
    with st.form(key="budget_form"):
        budget_text = st.text_input("Monthly budget", value=str(current_budget))
        if st.form_submit_button("Save"):
            on_submit(budget_text)


def display_expense_form(on_submit: Callable[[ExpenseInput], None],
                         expense_to_edit: Optional[Expense] = None):
    """
    Display the add/edit expense form.

    Parameters:
      - on_submit: callback invoked with ExpenseInput when the form is submitted
      - expense_to_edit: when given, fields are prefilled and the form key is
        tied to the expense id so switching records resets the inputs
    """
    editing = expense_to_edit is not None
    form_key = f"edit_expense_{expense_to_edit.id}" if editing else "expense_form"
    with st.form(key=form_key):
        amount_text = st.text_input("Amount", value=str(expense_to_edit.amount) if editing else "")
        category = st.text_input("Category", value=expense_to_edit.category if editing else "")
        date_val = st.date_input(
            "Date",
            value=expense_to_edit.date.date() if editing else datetime.date.today(),
        )
        submitted = st.form_submit_button("Save changes" if editing else "Add Expense")

        if submitted:
            time_of_day = expense_to_edit.date.timetz() if editing else None
            on_submit(ExpenseInput(
                amount_text=amount_text,
                category=category,
                date=_to_datetime(date_val, time_of_day),
            ))


def _expenses_frame(expenses: List[Expense]) -> pd.DataFrame:
    rows = [
        {
            "date": e.date.strftime("%Y-%m-%d"),
            "category": e.category,
            "amount": int(e.amount),
            "id": e.id,
        }
        for e in expenses
    ]
    return pd.DataFrame(rows, columns=["date", "category", "amount", "id"])


def display_expense_list(expenses: List[Expense], period: Period):
    """
    Render the period's expenses as a table and provide an XLSX export button.
    Rows keep insertion order.
    """
    st.subheader("Expenses")
    if not expenses:
        st.write("No expenses recorded for this month.")
        return

    df = _expenses_frame(expenses)
    st.dataframe(df.drop(columns=["id"]), use_container_width=True, hide_index=True)

    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="expenses")
    buffer.seek(0)

    st.download_button(
        label="Download as XLSX",
        data=buffer.getvalue(),
        file_name=f"expenses_{period.year}_{period.month:02d}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )


def display_category_chart(category_totals: List[Tuple[str, int]]):
    """Bar chart of totals per category, in the given (name-sorted) order."""
    if not category_totals:
        return
    st.subheader("Spending by category")

    ordered = [cat for cat, _ in category_totals]
    times = (len(ordered) + len(PALETTE) - 1) // len(PALETTE)
    color_scale = alt.Scale(domain=ordered, range=(PALETTE * times)[: len(ordered)])

    df = pd.DataFrame(category_totals, columns=["category", "total"])
    chart = alt.Chart(df).mark_bar().encode(
        x=alt.X("category:N", title="Category", sort=ordered),
        y=alt.Y("total:Q", title="Total spent"),
        color=alt.Color("category:N", scale=color_scale, sort=ordered, legend=None),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("total:Q", title="Total", format=","),
        ],
    ).properties(height=250)
    st.altair_chart(chart, use_container_width=True)


def display_manage_expenses(tracker, period: Period):
    """
    UI to select, edit and delete an existing expense of the selected month.
    Expects a tracker instance (budget_tracker.tracker.BudgetTracker).
    """
    st.header("Edit / Delete Expense")
    exs = tracker.list_expenses(period)
    if not exs:
        st.info("No expenses recorded for this month.")
        return

    # Label by position so two identical-looking rows stay distinct
    labels = [
        f"{i + 1}. {e.category} {_format_amount(e.amount)} {e.date:%Y-%m-%d}"
        for i, e in enumerate(exs)
    ]
    sel = st.selectbox("Select expense", options=range(len(exs)), format_func=lambda i: labels[i])
    expense = exs[sel]

    def on_submit(exp_input: ExpenseInput):
        updated = save_or_report(lambda: tracker.save_expense_from_text(
            exp_input.amount_text,
            exp_input.category,
            exp_input.date,
            expense_id=expense.id,
        ))
        if updated is not None:
            st.success("Expense updated.")
            _trigger_rerun()

    display_expense_form(on_submit, expense_to_edit=expense)

    # Delete UI (separate to avoid accidental deletes)
    st.markdown("---")
    st.write("Delete this expense")
    # keyed by id so a tick never carries over to a different expense
    delete_confirm = st.checkbox(
        "I confirm I want to delete this expense",
        key=f"confirm_delete_{expense.id}",
    )
    if st.button("Delete expense") and delete_confirm:
        if save_or_report(lambda: tracker.delete_expenses_at(period, [sel])):
            st.success("Expense deleted.")
            _trigger_rerun()
