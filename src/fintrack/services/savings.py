"""Manual savings-goal contributions and goal analytics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional

from ..domain.errors import GoalConfigurationError, NotFoundError, ValidationError
from ..domain.repositories import SavingsGoalRepository, TransactionRepository
from ..logging_config import get_logger
from ..models.savings_goal import SavingsGoal
from ..models.transaction import Transaction
from .periods import as_utc

logger = get_logger("services.savings")


def _require_goal(repo: SavingsGoalRepository, goal_id: int, user_id: int) -> SavingsGoal:
    goal = repo.get_by_id(goal_id, user_id=user_id)
    if goal is None:
        raise NotFoundError("SavingsGoal", goal_id)
    return goal


def _require_positive(goal_id: int, amount: float) -> None:
    if amount <= 0:
        raise ValidationError("SavingsGoal", goal_id, f"amount must be positive, got {amount}")


def contribute(
    repo: SavingsGoalRepository, goal_id: int, amount: float, *, user_id: int
) -> SavingsGoal:
    """Add money to a goal and re-derive its completion flag."""

    _require_positive(goal_id, amount)
    goal = _require_goal(repo, goal_id, user_id)
    goal.current_amount = round(goal.current_amount + amount, 2)
    goal.is_completed = goal.current_amount >= goal.target_amount
    updated = repo.update(goal, user_id=user_id)
    logger.info(
        "Goal contribution recorded",
        extra={"goal_id": goal_id, "user_id": user_id, "amount": amount},
    )
    return updated


def withdraw(
    repo: SavingsGoalRepository, goal_id: int, amount: float, *, user_id: int
) -> SavingsGoal:
    """Take money out of a goal; the balance never drops below zero."""

    _require_positive(goal_id, amount)
    goal = _require_goal(repo, goal_id, user_id)
    goal.current_amount = round(max(0.0, goal.current_amount - amount), 2)
    goal.is_completed = goal.current_amount > 0 and goal.current_amount >= goal.target_amount
    updated = repo.update(goal, user_id=user_id)
    logger.info(
        "Goal withdrawal recorded",
        extra={"goal_id": goal_id, "user_id": user_id, "amount": amount},
    )
    return updated


@dataclass(slots=True)
class GoalSummary:
    total_goals: int
    completed_goals: int
    active_goals: int
    overdue_goals: int
    total_target_amount: float
    total_current_amount: float
    average_progress: float
    overall_progress: float

    @property
    def total_remaining(self) -> float:
        return round(self.total_target_amount - self.total_current_amount, 2)


def summarize_goals(goals: Iterable[SavingsGoal], *, as_of: Optional[date] = None) -> GoalSummary:
    """Aggregate figures across all of a user's goals.

    Goals with a non-positive target are counted but left out of the progress
    averages.
    """
    today = as_of or date.today()
    rows = list(goals)

    total_target = sum(g.target_amount for g in rows)
    total_current = sum(g.current_amount for g in rows)
    ratios = [g.current_amount / g.target_amount for g in rows if g.target_amount > 0]

    return GoalSummary(
        total_goals=len(rows),
        completed_goals=sum(1 for g in rows if g.is_completed),
        active_goals=sum(1 for g in rows if g.is_active and not g.is_completed),
        overdue_goals=sum(1 for g in rows if g.target_date < today and not g.is_completed),
        total_target_amount=round(total_target, 2),
        total_current_amount=round(total_current, 2),
        average_progress=round(sum(ratios) / len(ratios) * 100, 2) if ratios else 0.0,
        overall_progress=round(total_current / total_target * 100, 2) if total_target > 0 else 0.0,
    )


INCOME_CATEGORY = "Income"
INCOME_WINDOW_DAYS = 30
SUGGESTED_SAVINGS_RATE = 0.10


@dataclass(slots=True)
class GoalTrajectory:
    """Where a goal stands against a straight line from creation to target date."""

    goal_id: Optional[int]
    progress_percentage: float
    days_since_start: int
    total_days: int
    expected_progress: float
    is_on_track: bool


def _days_between(start: datetime, end: datetime) -> int:
    return math.ceil((end - start).total_seconds() / 86400)


def goal_on_track(goal: SavingsGoal, *, as_of: Optional[datetime] = None) -> GoalTrajectory:
    """Compare a goal's balance with the pace needed to hit its target date.

    Days are counted from ``created_at`` and rounded up. A goal whose target
    date is not after its creation has no expected pace and is on track only
    once funded.

    Raises:
        GoalConfigurationError: If the target amount is not positive
    """
    if goal.target_amount <= 0:
        raise GoalConfigurationError(goal.id, f"target_amount must be positive, got {goal.target_amount}")

    now = as_utc(as_of or datetime.now(timezone.utc))
    created = as_utc(goal.created_at)
    deadline = datetime.combine(goal.target_date, time.min, tzinfo=timezone.utc)

    days_since_start = _days_between(created, now)
    total_days = _days_between(created, deadline)
    if total_days > 0:
        elapsed = days_since_start / total_days
        expected = round(elapsed * 100, 2)
        on_track = goal.current_amount >= elapsed * goal.target_amount
    else:
        expected = 0.0
        on_track = goal.current_amount >= goal.target_amount

    return GoalTrajectory(
        goal_id=goal.id,
        progress_percentage=round(goal.current_amount / goal.target_amount * 100, 2),
        days_since_start=days_since_start,
        total_days=total_days,
        expected_progress=expected,
        is_on_track=on_track,
    )


@dataclass(slots=True)
class ContributionSuggestion:
    total_income: float
    active_goals: int
    potential_contribution: float


def suggest_contribution(
    transactions: Iterable[Transaction],
    goals: Iterable[SavingsGoal],
    *,
    as_of: Optional[datetime] = None,
) -> ContributionSuggestion:
    """Suggest setting aside a share of the last 30 days of income.

    Income is money in (negative amounts) labelled ``Income``.
    """
    now = as_utc(as_of or datetime.now(timezone.utc))
    since = now - timedelta(days=INCOME_WINDOW_DAYS)

    total_income = sum(
        abs(t.amount)
        for t in transactions
        if t.amount < 0
        and t.primary_category == INCOME_CATEGORY
        and as_utc(t.date) >= since
    )
    active = sum(1 for g in goals if g.is_active and not g.is_completed)

    return ContributionSuggestion(
        total_income=round(total_income, 2),
        active_goals=active,
        potential_contribution=round(total_income * SUGGESTED_SAVINGS_RATE, 2),
    )


def suggest_contribution_for_user(
    transaction_repo: TransactionRepository,
    goal_repo: SavingsGoalRepository,
    *,
    user_id: int,
    as_of: Optional[datetime] = None,
) -> ContributionSuggestion:
    now = as_utc(as_of or datetime.now(timezone.utc))
    transactions = transaction_repo.search(
        start_date=now - timedelta(days=INCOME_WINDOW_DAYS),
        category=INCOME_CATEGORY,
        user_id=user_id,
    )
    suggestion = suggest_contribution(
        transactions, goal_repo.list_for_user(user_id=user_id), as_of=now
    )
    logger.info(
        "Contribution suggestion computed",
        extra={"user_id": user_id, "potential_contribution": suggestion.potential_contribution},
    )
    return suggestion
