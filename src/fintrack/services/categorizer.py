"""Rule-based transaction categorization.

Each user owns an ordered list of :class:`UserCategoryRule` rows. Rules are
evaluated by ``(priority, created_at, id)`` and the first rule whose pattern
matches the transaction's merchant text supplies the category.

A literal rule matches when its text occurs anywhere in the merchant text,
ignoring case. A regex rule is searched against the same text, also ignoring
case. Patterns that fail to compile are skipped and reported; they never
stop the remaining rules from being evaluated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence, Union

from ..domain.errors import NotFoundError, RuleConfigurationError
from ..domain.repositories import CategoryRuleRepository, TransactionRepository
from ..logging_config import get_logger
from ..models.category_rule import UserCategoryRule
from ..models.transaction import Transaction
from .bank_categories import display_category
from .periods import as_utc

logger = get_logger("services.categorizer")

Matcher = Callable[[str], bool]


def _sort_key(rule: UserCategoryRule) -> tuple[int, datetime, int]:
    created = as_utc(rule.created_at or datetime.min)
    return (rule.priority, created, rule.id or 0)


def order_rules(rules: Iterable[UserCategoryRule]) -> list[UserCategoryRule]:
    """Return the rules in evaluation order without touching the input."""

    return sorted(rules, key=_sort_key)


@dataclass(frozen=True, slots=True)
class CompiledRule:
    """Outcome of preparing one rule for evaluation.

    Exactly one of ``matcher`` and ``skip_reason`` is set.
    """

    rule: UserCategoryRule
    matcher: Optional[Matcher] = None
    skip_reason: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.matcher is not None

    def matches(self, text: str) -> bool:
        return self.matcher is not None and self.matcher(text)


def compile_rule(rule: UserCategoryRule) -> CompiledRule:
    """Build the matcher for a single rule; invalid regexes become skips."""

    pattern = rule.merchant or ""
    if not pattern.strip():
        return CompiledRule(rule=rule, skip_reason="empty merchant pattern")
    if rule.is_regex:
        try:
            regex = re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            return CompiledRule(rule=rule, skip_reason=str(exc))
        return CompiledRule(rule=rule, matcher=lambda text: regex.search(text) is not None)

    needle = pattern.strip().casefold()
    return CompiledRule(rule=rule, matcher=lambda text: needle in text.casefold())


@dataclass(slots=True)
class RuleSet:
    """A user's rules, ordered and compiled once for a whole batch."""

    compiled: list[CompiledRule]
    errors: list[RuleConfigurationError] = field(default_factory=list)

    def first_match(self, text: str) -> Optional[UserCategoryRule]:
        for entry in self.compiled:
            if entry.matches(text):
                return entry.rule
        return None


def compile_rules(rules: Iterable[UserCategoryRule]) -> RuleSet:
    """Order and compile rules, logging every rule that has to be skipped."""

    compiled: list[CompiledRule] = []
    errors: list[RuleConfigurationError] = []
    for rule in order_rules(rules):
        entry = compile_rule(rule)
        if entry.usable:
            compiled.append(entry)
            continue
        error = RuleConfigurationError(rule.id, rule.merchant, entry.skip_reason or "unusable")
        errors.append(error)
        logger.warning(
            "Skipping category rule with invalid pattern",
            extra={
                "rule_id": rule.id,
                "user_id": rule.user_id,
                "pattern": rule.merchant,
                "reason": entry.skip_reason,
                "error_code": error.error_code,
            },
        )
    return RuleSet(compiled=compiled, errors=errors)


def match_text(transaction: Transaction) -> str:
    """Text the rules are matched against: merchant name, else the raw name."""

    merchant = (transaction.merchant_name or "").strip()
    if merchant:
        return merchant
    return (transaction.name or "").strip()


def categorize(
    transaction: Transaction,
    rules: Union[RuleSet, Sequence[UserCategoryRule]],
) -> Optional[str]:
    """Return the category of the first matching rule, or None."""

    rule_set = rules if isinstance(rules, RuleSet) else compile_rules(rules)
    text = match_text(transaction)
    if not text:
        return None
    rule = rule_set.first_match(text)
    return rule.category if rule is not None else None


def fallback_category(transaction: Transaction, default_label: str) -> str:
    """Label for a transaction no rule matched: bank mapping, else the default."""

    if transaction.categories:
        return display_category(transaction.categories)
    return default_label


@dataclass(slots=True)
class CategorizationReport:
    """Summary of one categorization batch."""

    user_id: int
    examined: int = 0
    changed: int = 0
    unmatched: int = 0
    defaulted: int = 0
    rule_errors: list[RuleConfigurationError] = field(default_factory=list)
    assignments: dict[int, str] = field(default_factory=dict)


class CategorizationService:
    """Applies a user's rules to stored transactions.

    The only write is ``primary_category`` and only when it changes, so the
    service can be re-run over the same data without further effect.
    """

    def __init__(
        self,
        transaction_repo: TransactionRepository,
        rule_repo: CategoryRuleRepository,
    ):
        self.transaction_repo = transaction_repo
        self.rule_repo = rule_repo

    def load_rules(self, *, user_id: int) -> RuleSet:
        return compile_rules(self.rule_repo.list_for_user(user_id=user_id))

    def categorize_transaction(self, transaction_id: int, *, user_id: int) -> Optional[str]:
        """Categorize one stored transaction, typically right after ingestion."""

        transaction = self.transaction_repo.get_by_id(transaction_id, user_id=user_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        category = categorize(transaction, self.load_rules(user_id=user_id))
        if category is not None and category != transaction.primary_category:
            self.transaction_repo.update_category(transaction_id, category, user_id=user_id)
        return category

    def recategorize_user(
        self,
        user_id: int,
        *,
        only_uncategorized: bool = False,
        default_label: Optional[str] = None,
    ) -> CategorizationReport:
        """Run the user's rules over their transactions.

        Args:
            user_id: Owner of the transactions and rules
            only_uncategorized: Restrict the batch to rows without a category
            default_label: When given, uncategorized rows no rule matches get
                the bank-category mapping or this label

        Returns:
            CategorizationReport with counts, rule errors and new assignments
        """
        rule_set = self.load_rules(user_id=user_id)
        report = CategorizationReport(user_id=user_id, rule_errors=list(rule_set.errors))

        if only_uncategorized:
            transactions = self.transaction_repo.list_uncategorized(user_id=user_id)
        else:
            transactions = self.transaction_repo.search(user_id=user_id)

        for transaction in transactions:
            report.examined += 1
            category = categorize(transaction, rule_set)
            if category is None:
                report.unmatched += 1
                if default_label is None or transaction.primary_category:
                    continue
                category = fallback_category(transaction, default_label)
                report.defaulted += 1
            if category == transaction.primary_category:
                continue
            if self.transaction_repo.update_category(transaction.id, category, user_id=user_id):
                report.changed += 1
                report.assignments[transaction.id] = category

        logger.info(
            "Categorization batch finished",
            extra={
                "user_id": user_id,
                "examined": report.examined,
                "changed": report.changed,
                "unmatched": report.unmatched,
                "rule_errors": len(report.rule_errors),
            },
        )
        return report
