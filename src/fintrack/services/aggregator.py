"""Budget utilisation and savings-goal progress."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, Iterable, Optional, TypeVar

from ..domain.errors import BudgetConfigurationError, GoalConfigurationError, ValidationError
from ..domain.repositories import BudgetRepository, SavingsGoalRepository, TransactionRepository
from ..logging_config import get_logger
from ..models.budget import Budget
from ..models.savings_goal import SavingsGoal
from ..models.transaction import Transaction
from .periods import PeriodWindow, period_window

logger = get_logger("services.aggregator")

T = TypeVar("T")


@dataclass(slots=True)
class BudgetProgress:
    """Spend against one budget inside its current period window."""

    budget_id: Optional[int]
    category: str
    limit: float
    window: PeriodWindow
    spent: float
    pending_impact: float
    transaction_count: int

    @property
    def remaining(self) -> float:
        return round(self.limit - self.spent, 2)

    @property
    def percent_used(self) -> float:
        if self.limit <= 0:
            return 0.0
        return round(self.spent / self.limit * 100, 2)

    @property
    def over_budget(self) -> bool:
        return self.remaining < 0


@dataclass(slots=True)
class GoalProgress:
    """Progress of one savings goal.

    ``ratio`` is the raw ``current / target`` and can exceed 1;
    ``display_ratio`` is clamped to ``[0, 1]`` for progress bars.
    """

    goal_id: Optional[int]
    current: float
    target: float
    ratio: float
    days_remaining: int
    is_overdue: bool

    @property
    def display_ratio(self) -> float:
        return min(max(self.ratio, 0.0), 1.0)

    @property
    def progress_percentage(self) -> float:
        return round(self.ratio * 100, 2)

    @property
    def remaining(self) -> float:
        return round(self.target - self.current, 2)

    @property
    def is_completed(self) -> bool:
        return self.current >= self.target

    @property
    def exceeded(self) -> bool:
        return self.current > self.target


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """A budget or goal the batch could not evaluate."""

    entity: str
    entity_id: Optional[int]
    reason: str
    error_code: str

    @classmethod
    def from_error(cls, error: ValidationError) -> "ValidationFailure":
        return cls(
            entity=error.entity,
            entity_id=error.entity_id,
            reason=error.reason,
            error_code=error.error_code,
        )


@dataclass(slots=True)
class AggregationReport(Generic[T]):
    """Per-user batch result: computed snapshots plus collected failures."""

    user_id: int
    results: list[T] = field(default_factory=list)
    failures: list[ValidationFailure] = field(default_factory=list)
    skipped_inactive: int = 0
    updated: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


def budget_window(budget: Budget, *, as_of: date) -> PeriodWindow:
    """Validate a budget and return its current period window."""

    if budget.amount is None or budget.amount < 0:
        raise BudgetConfigurationError(budget.id, f"limit must not be negative, got {budget.amount}")
    return period_window(
        budget.period,
        start_date=budget.start_date,
        end_date=budget.end_date,
        as_of=as_of,
        budget_id=budget.id,
    )


def budget_progress(
    budget: Budget,
    transactions: Iterable[Transaction],
    *,
    as_of: date,
) -> BudgetProgress:
    """Fold transactions into a budget's spend for the window containing ``as_of``.

    Only transactions whose primary category equals the budget's category and
    whose date falls inside the window count. Settled ones make up ``spent``;
    pending ones are reported separately as ``pending_impact``.

    Raises:
        BudgetConfigurationError: negative limit or end date before start date
    """
    window = budget_window(budget, as_of=as_of)

    spent = 0.0
    pending = 0.0
    count = 0
    for txn in transactions:
        if txn.primary_category != budget.category or not window.contains(txn.date):
            continue
        if txn.pending:
            pending += float(txn.amount)
            continue
        spent += float(txn.amount)
        count += 1

    return BudgetProgress(
        budget_id=budget.id,
        category=budget.category,
        limit=float(budget.amount),
        window=window,
        spent=round(spent, 2),
        pending_impact=round(pending, 2),
        transaction_count=count,
    )


def goal_progress(goal: SavingsGoal, *, as_of: Optional[date] = None) -> GoalProgress:
    """Compute progress for a savings goal.

    Raises:
        GoalConfigurationError: when the target is zero or negative
    """
    target = float(goal.target_amount or 0.0)
    if target <= 0:
        raise GoalConfigurationError(goal.id, f"target amount must be positive, got {goal.target_amount}")

    today = as_of or date.today()
    current = float(goal.current_amount or 0.0)
    days_remaining = (goal.target_date - today).days
    return GoalProgress(
        goal_id=goal.id,
        current=current,
        target=target,
        ratio=current / target,
        days_remaining=days_remaining,
        is_overdue=days_remaining < 0 and current < target,
    )


def available_categories(transactions: Iterable[Transaction], *, min_count: int = 5) -> list[str]:
    """Spend categories seen at least ``min_count`` times, most frequent first."""

    counts = Counter(
        txn.primary_category
        for txn in transactions
        if txn.primary_category and txn.amount > 0
    )
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [category for category, count in ranked if count >= min_count]


class AggregationService:
    """Recomputes budget and goal snapshots for a user from stored rows."""

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        budget_repo: BudgetRepository,
        goal_repo: SavingsGoalRepository,
    ):
        self.transaction_repo = transaction_repo
        self.budget_repo = budget_repo
        self.goal_repo = goal_repo

    def recompute_budgets(
        self,
        user_id: int,
        *,
        as_of: Optional[date] = None,
        include_inactive: bool = False,
    ) -> AggregationReport[BudgetProgress]:
        """Compute progress for each of a user's budgets.

        Misconfigured budgets are reported in ``failures`` and do not stop the
        rest of the batch. Storage errors propagate.
        """
        today = as_of or date.today()
        report: AggregationReport[BudgetProgress] = AggregationReport(user_id=user_id)

        for budget in self.budget_repo.list_for_user(user_id=user_id):
            if not budget.is_active and not include_inactive:
                report.skipped_inactive += 1
                continue
            try:
                window = budget_window(budget, as_of=today)
            except ValidationError as exc:
                self._record_failure(report, exc)
                continue
            transactions = self.transaction_repo.search(
                start_date=window.start,
                end_date=window.end,
                category=budget.category,
                user_id=user_id,
            )
            report.results.append(budget_progress(budget, transactions, as_of=today))

        logger.info(
            "Budget recompute finished",
            extra={
                "user_id": user_id,
                "budgets": len(report.results),
                "failures": len(report.failures),
                "over_budget": sum(1 for p in report.results if p.over_budget),
            },
        )
        return report

    def recompute_goals(
        self,
        user_id: int,
        *,
        as_of: Optional[date] = None,
        include_inactive: bool = False,
    ) -> AggregationReport[GoalProgress]:
        """Compute goal progress and persist any change to ``is_completed``."""

        today = as_of or date.today()
        report: AggregationReport[GoalProgress] = AggregationReport(user_id=user_id)

        for goal in self.goal_repo.list_for_user(user_id=user_id):
            if not goal.is_active and not include_inactive:
                report.skipped_inactive += 1
                continue
            try:
                progress = goal_progress(goal, as_of=today)
            except ValidationError as exc:
                self._record_failure(report, exc)
                continue
            report.results.append(progress)
            if progress.is_completed != goal.is_completed and goal.id is not None:
                if self.goal_repo.set_completed(goal.id, progress.is_completed, user_id=user_id):
                    report.updated += 1

        logger.info(
            "Goal recompute finished",
            extra={
                "user_id": user_id,
                "goals": len(report.results),
                "failures": len(report.failures),
                "updated": report.updated,
            },
        )
        return report

    @staticmethod
    def _record_failure(report: AggregationReport, error: ValidationError) -> None:
        report.failures.append(ValidationFailure.from_error(error))
        logger.warning(
            "Skipping misconfigured %s",
            error.entity,
            extra={
                "user_id": report.user_id,
                "entity_id": error.entity_id,
                "reason": error.reason,
                "error_code": error.error_code,
            },
        )
