"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .budget import SQLModelBudgetRepository
from .category_rule import SQLModelCategoryRuleRepository
from .savings_goal import SQLModelSavingsGoalRepository
from .transaction import SQLModelTransactionRepository
from .user import SQLModelUserRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelBudgetRepository",
    "SQLModelCategoryRuleRepository",
    "SQLModelSavingsGoalRepository",
    "SQLModelTransactionRepository",
    "SQLModelUserRepository",
]
