"""Repository protocol definitions for domain layer."""

from .account import AccountRepository
from .budget import BudgetRepository
from .category_rule import CategoryRuleRepository
from .savings_goal import SavingsGoalRepository
from .transaction import TransactionRepository
from .user import UserRepository

__all__ = [
    "AccountRepository",
    "BudgetRepository",
    "CategoryRuleRepository",
    "SavingsGoalRepository",
    "TransactionRepository",
    "UserRepository",
]
