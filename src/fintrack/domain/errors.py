"""Exception hierarchy for the categorization and aggregation core.

Rule configuration problems are recovered locally and only ever travel as
report entries. Validation errors are raised by the pure functions and
collected per item by the batch services. Storage errors are SQLAlchemy's own
and are never wrapped here.
"""

from __future__ import annotations

from typing import Any


class FinTrackError(Exception):
    """Base exception for all FinTrack domain errors.

    Attributes:
        error_code: Stable machine-readable code (e.g. "RULE_001")
        details: Additional context for logging
    """

    error_code = "FINTRACK_000"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        self.details = details or {}
        super().__init__(message)


class RuleConfigurationError(FinTrackError):
    """A category rule whose pattern cannot be evaluated.

    Never raised across a batch boundary; the categorizer records these and
    keeps evaluating the remaining rules.
    """

    error_code = "RULE_001"

    def __init__(self, rule_id: int | None, pattern: str, reason: str):
        self.rule_id = rule_id
        self.pattern = pattern
        self.reason = reason
        super().__init__(
            f"Rule {rule_id} has an invalid pattern {pattern!r}: {reason}",
            details={"rule_id": rule_id, "pattern": pattern},
        )


class ValidationError(FinTrackError):
    """Data integrity failure surfaced to the caller."""

    error_code = "VALIDATION_001"

    def __init__(self, entity: str, entity_id: int | None, reason: str):
        self.entity = entity
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"{entity} {entity_id}: {reason}",
            details={"entity": entity, "entity_id": entity_id},
        )


class BudgetConfigurationError(ValidationError):
    """Budget whose limit or date range cannot be evaluated."""

    error_code = "BUDGET_001"

    def __init__(self, budget_id: int | None, reason: str):
        super().__init__("Budget", budget_id, reason)


class GoalConfigurationError(ValidationError):
    """Savings goal whose target cannot produce a progress ratio."""

    error_code = "GOAL_001"

    def __init__(self, goal_id: int | None, reason: str):
        super().__init__("SavingsGoal", goal_id, reason)


class NotFoundError(FinTrackError):
    """Requested row does not exist for the user."""

    error_code = "NOT_FOUND_001"

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} not found",
            details={"entity": entity, "entity_id": entity_id},
        )
