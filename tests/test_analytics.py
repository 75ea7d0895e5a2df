from __future__ import annotations

import pytest

from passive_genius.analytics import ensure_task_exists, progress_percent, summarize_projections
from passive_genius.errors import TaskNotFoundError
from passive_genius.schemas import BusinessPlanStep, DetailedPlan, FinancialProjection


def test_progress_of_plan_without_tasks_is_zero() -> None:
    empty = DetailedPlan(overview="o", marketing_strategy="m", steps=[BusinessPlanStep(phase="Setup", tasks=[])])

    assert progress_percent(empty, {"0-0": True}) == 0


def test_progress_rounds_half_up(plan: DetailedPlan) -> None:
    two_phase = plan.model_copy(update={"steps": plan.steps[:1] + [BusinessPlanStep(phase="X", tasks=["a", "b", "c", "d", "e", "f"])]})

    # 1 of 8 tasks is 12.5%
    assert progress_percent(two_phase, {"0-0": True}) == 13


def test_progress_ignores_unknown_and_false_keys(plan: DetailedPlan) -> None:
    assert progress_percent(plan, {"0-0": True, "0-1": False, "9-9": True}) == 20


def test_ensure_task_exists(plan: DetailedPlan) -> None:
    assert ensure_task_exists(plan, 1, 0) == ("Launch", "Open pre-sales")

    with pytest.raises(TaskNotFoundError):
        ensure_task_exists(plan, 3, 0)
    with pytest.raises(TaskNotFoundError):
        ensure_task_exists(plan, 2, 1)
    with pytest.raises(TaskNotFoundError):
        ensure_task_exists(plan, -1, 0)


def test_summary_uses_reported_figures() -> None:
    rows = [
        FinancialProjection(month="Month 1", revenue=100, expenses=300, profit=-200),
        FinancialProjection(month="Month 2", revenue=300, expenses=100, profit=50),
    ]

    summary = summarize_projections(rows)

    assert summary.total_revenue == 400
    assert summary.total_expenses == 400
    assert summary.total_profit == -150
    assert summary.average_margin == -37
    assert summary.first_profit_month == "Month 2"


def test_summary_without_revenue_or_profit() -> None:
    summary = summarize_projections([FinancialProjection(month="Month 1", revenue=0, expenses=50, profit=-50)])

    assert summary.average_margin == 0
    assert summary.first_profit_month == "N/A"
    assert summarize_projections([]).total_profit == 0
