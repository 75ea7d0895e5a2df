"""Execution progress and financial headline numbers for a plan."""

from __future__ import annotations

import math
from typing import Dict, Iterable, Iterator, Tuple

from .errors import TaskNotFoundError
from .schemas import DetailedPlan, FinancialProjection, PlanSummary
from .storage import task_key


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def iter_task_keys(plan: DetailedPlan) -> Iterator[str]:
    for phase_index, step in enumerate(plan.steps):
        for task_index, _ in enumerate(step.tasks):
            yield task_key(phase_index, task_index)


def progress_percent(plan: DetailedPlan, completed: Dict[str, bool]) -> int:
    """Return the share of completed tasks as a whole percentage.

    A plan without tasks is 0% done.
    """

    total = 0
    done = 0
    for key in iter_task_keys(plan):
        total += 1
        if completed.get(key):
            done += 1
    if total == 0:
        return 0
    return _round_half_up(done / total * 100)


def ensure_task_exists(plan: DetailedPlan, phase_index: int, task_index: int) -> Tuple[str, str]:
    """Return ``(phase, task)`` text or raise :class:`TaskNotFoundError`."""

    if not 0 <= phase_index < len(plan.steps):
        raise TaskNotFoundError(f"Phase {phase_index} does not exist in this plan.")
    step = plan.steps[phase_index]
    if not 0 <= task_index < len(step.tasks):
        raise TaskNotFoundError(f"Task {task_index} does not exist in phase '{step.phase}'.")
    return step.phase, step.tasks[task_index]


def summarize_projections(projections: Iterable[FinancialProjection]) -> PlanSummary:
    """Aggregate the forecast as reported; profit is never recomputed."""

    rows = list(projections)
    total_revenue = sum(row.revenue for row in rows)
    total_expenses = sum(row.expenses for row in rows)
    total_profit = sum(row.profit for row in rows)
    average_margin = _round_half_up(total_profit / total_revenue * 100) if total_revenue > 0 else 0
    first_profit_month = next((row.month for row in rows if row.profit > 0), "N/A")
    return PlanSummary(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        total_profit=total_profit,
        average_margin=average_margin,
        first_profit_month=first_profit_month,
    )
