"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelAccountRepository,
    SQLModelBudgetRepository,
    SQLModelCategoryRuleRepository,
    SQLModelSavingsGoalRepository,
    SQLModelTransactionRepository,
    SQLModelUserRepository,
)
from .services.aggregator import AggregationService
from .services.categorizer import CategorizationService


@dataclass
class AppContext:
    """Centralized application context with repositories and services."""

    config: BaseConfig
    engine: Engine
    session_factory: Callable[[], Session]

    # Repositories
    user_repo: SQLModelUserRepository
    account_repo: SQLModelAccountRepository
    transaction_repo: SQLModelTransactionRepository
    rule_repo: SQLModelCategoryRuleRepository
    budget_repo: SQLModelBudgetRepository
    goal_repo: SQLModelSavingsGoalRepository

    # Services
    categorizer: CategorizationService
    aggregator: AggregationService

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    transaction_repo = SQLModelTransactionRepository(session_factory)
    rule_repo = SQLModelCategoryRuleRepository(session_factory)
    budget_repo = SQLModelBudgetRepository(session_factory)
    goal_repo = SQLModelSavingsGoalRepository(session_factory)

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        user_repo=SQLModelUserRepository(session_factory),
        account_repo=SQLModelAccountRepository(session_factory),
        transaction_repo=transaction_repo,
        rule_repo=rule_repo,
        budget_repo=budget_repo,
        goal_repo=goal_repo,
        categorizer=CategorizationService(transaction_repo, rule_repo),
        aggregator=AggregationService(transaction_repo, budget_repo, goal_repo),
    )
