"""SQLModel table exports."""

from .account import Account
from .budget import Budget, BudgetPeriod
from .category_rule import UserCategoryRule
from .savings_goal import SavingsGoal
from .transaction import Transaction
from .user import SyncStatus, User

__all__ = [
    "Account",
    "Budget",
    "BudgetPeriod",
    "SavingsGoal",
    "SyncStatus",
    "Transaction",
    "User",
    "UserCategoryRule",
]
