"""Background scheduler for the nightly categorization and recompute batch."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .logging_config import get_logger

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("scheduler")

NIGHTLY_JOB_ID = "nightly_batch"


@dataclass(slots=True)
class NightlySummary:
    """What one nightly run did, per user."""

    users: int = 0
    transactions_changed: int = 0
    rule_errors: int = 0
    validation_failures: int = 0
    goals_updated: int = 0
    failed_users: list[int] = field(default_factory=list)


def run_nightly(ctx: AppContext, *, as_of: Optional[date] = None) -> NightlySummary:
    """Re-categorize every user's transactions, then recompute budgets and goals.

    Users are independent; a failure for one user is logged and the run
    moves on to the next.
    """
    summary = NightlySummary()
    for user_id in ctx.user_repo.list_ids():
        summary.users += 1
        try:
            categorized = ctx.categorizer.recategorize_user(
                user_id, default_label=ctx.config.DEFAULT_CATEGORY
            )
            budgets = ctx.aggregator.recompute_budgets(user_id, as_of=as_of)
            goals = ctx.aggregator.recompute_goals(user_id, as_of=as_of)
        except Exception as exc:
            summary.failed_users.append(user_id)
            logger.error(f"Nightly batch failed for user {user_id}: {exc}", exc_info=True)
            continue

        summary.transactions_changed += categorized.changed
        summary.rule_errors += len(categorized.rule_errors)
        summary.validation_failures += len(budgets.failures) + len(goals.failures)
        summary.goals_updated += goals.updated

    logger.info(
        "Nightly batch completed",
        extra={
            "users": summary.users,
            "transactions_changed": summary.transactions_changed,
            "failed_users": summary.failed_users,
        },
    )
    return summary


class BatchScheduler:
    """Runs the nightly batch on APScheduler."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with repositories, services and config
        """
        self.ctx = ctx
        self.scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler with the nightly job registered."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler()
        hour = self.ctx.config.NIGHTLY_HOUR
        self.scheduler.add_job(
            func=self._run_nightly,
            trigger=CronTrigger(hour=hour, minute=0),
            id=NIGHTLY_JOB_ID,
            name="Nightly categorization and recompute",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled nightly batch at {hour:02d}:00")

        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def _run_nightly(self) -> None:
        logger.info("Starting scheduled nightly batch")
        run_nightly(self.ctx)


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BatchScheduler:
    """Create and optionally start a background scheduler.

    Args:
        ctx: Application context
        auto_start: Start immediately even when SCHEDULER_ENABLED is off;
            the scheduler always starts when that flag is on

    Returns:
        BatchScheduler instance
    """
    scheduler = BatchScheduler(ctx)
    if auto_start or ctx.config.SCHEDULER_ENABLED:
        scheduler.start()
    return scheduler
