"""
dashboard.py - Streamlit UI entrypoint and orchestration

This module wires the UI components (budget_tracker.ui.components) with the
application state (budget_tracker.tracker). The main() function builds the
sidebar (period selection and menu) and routes actions to components and
tracker methods.

Design notes:
 - Keep the dashboard responsible only for UI orchestration and presentation.
 - All persistence and state rules live in budget_tracker.tracker.
 - Components return lightweight data objects (ExpenseInput) to keep wiring simple.
"""

import streamlit as st

from budget_tracker.aggregation import Period, current_period
from budget_tracker.tracker import BudgetTracker
from budget_tracker.ui import components

YEAR_CHOICES = list(range(2023, 2031))
MONTH_CHOICES = list(range(1, 13))


def _select_period() -> Period:
    """Year/month pickers in the sidebar, defaulting to the current month."""
    today = current_period()
    year_index = YEAR_CHOICES.index(today.year) if today.year in YEAR_CHOICES else 0
    col1, col2 = st.sidebar.columns(2)
    with col1:
        year = st.selectbox("Year", options=YEAR_CHOICES, index=year_index)
    with col2:
        month = st.selectbox("Month", options=MONTH_CHOICES, index=MONTH_CHOICES.index(today.month))
    return Period(year, month)


def _sidebar_budget_and_reset(tracker: BudgetTracker):
    def on_budget(text: str):
        if components.save_or_report(lambda: tracker.set_budget_from_text(text)):
            st.success("Budget saved.")

    components.display_budget_form(tracker.budget, on_budget)

    def clear_all():
        tracker.reset()
        return True

    st.markdown("---")
    # confirm checkbox to avoid accidental data loss
    confirm = st.checkbox("I confirm I want to clear everything", key="confirm_reset")
    if st.button("Reset budget and expenses") and confirm:
        if components.save_or_report(clear_all):
            st.success("Budget and expenses cleared.")


def main():
    """
    Streamlit page: sidebar menu controls which view is shown.
    Actions:
      - Overview: totals, remaining budget, expense list and category chart
      - Add Expense: show form and persist via tracker.save_expense_from_text
      - Edit Expense: edit/delete one of the selected month's expenses
    Sidebar, always shown:
      - period pickers
      - budget form, persisted via tracker.set_budget_from_text
      - Reset: clear budget and expenses (checkbox + button confirmation)
    """
    st.title("Personal Budget")
    tracker = BudgetTracker()
    period = _select_period()

    menu = ["Overview", "Add Expense", "Edit Expense"]
    choice = st.sidebar.selectbox("Select an option", menu)

    with st.sidebar:
        _sidebar_budget_and_reset(tracker)

    if choice == "Overview":
        summary = tracker.summary(period)
        components.display_summary(summary)
        components.display_expense_list(summary.expenses, period)
        components.display_category_chart(summary.category_totals)

    elif choice == "Add Expense":
        st.header("Add Expense")

        def on_submit(exp_input: components.ExpenseInput):
            added = components.save_or_report(lambda: tracker.save_expense_from_text(
                exp_input.amount_text,
                exp_input.category,
                exp_input.date,
            ))
            if added is not None:
                st.success("Expense added.")

        components.display_expense_form(on_submit)

    elif choice == "Edit Expense":
        components.display_manage_expenses(tracker, period)


if __name__ == "__main__":
    main()
