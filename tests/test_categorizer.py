"""Tests for rule-based transaction categorization."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from fintrack.domain.errors import NotFoundError
from fintrack.infra.repositories import (
    SQLModelCategoryRuleRepository,
    SQLModelTransactionRepository,
)
from fintrack.models import Transaction, UserCategoryRule
from fintrack.services.categorizer import (
    CategorizationService,
    categorize,
    compile_rule,
    compile_rules,
    fallback_category,
    match_text,
    order_rules,
)

UTC = timezone.utc
BASE = datetime(2024, 3, 1, 9, 0, 0, tzinfo=UTC)


def _rule(
    rule_id: int,
    merchant: str,
    category: str,
    *,
    is_regex: bool = False,
    priority: int = 1,
    created_at: datetime = BASE,
) -> UserCategoryRule:
    return UserCategoryRule(
        id=rule_id,
        user_id=1,
        merchant=merchant,
        category=category,
        is_regex=is_regex,
        priority=priority,
        created_at=created_at,
    )


def _txn(merchant_name: str | None = None, name: str = "POS PURCHASE") -> Transaction:
    return Transaction(
        id=1,
        user_id=1,
        account_id=1,
        plaid_transaction_id="t-1",
        name=name,
        merchant_name=merchant_name,
        amount=4.5,
        date=BASE,
    )


@pytest.fixture
def coffee_rules():
    return [
        _rule(2, "^Star.*", "Retail", is_regex=True, priority=2),
        _rule(1, "Starbucks", "Coffee", priority=1),
    ]


class TestRuleMatching:
    """First matching rule in (priority, created_at, id) order wins."""

    def test_lower_priority_wins_when_both_match(self, coffee_rules):
        assert categorize(_txn("Starbucks #221"), coffee_rules) == "Coffee"

    def test_regex_rule_matches_alone(self):
        rules = [_rule(2, "^Star.*", "Retail", is_regex=True, priority=2)]
        assert categorize(_txn("Starlight Mall"), rules) == "Retail"

    def test_literal_match_is_case_insensitive_substring(self):
        rules = [_rule(1, "starbucks", "Coffee")]
        assert categorize(_txn("STARBUCKS STORE 0042"), rules) == "Coffee"

    def test_regex_match_is_case_insensitive_search(self):
        rules = [_rule(1, r"uber\s+eats", "Food Delivery", is_regex=True)]
        assert categorize(_txn("Payment to UBER   EATS"), rules) == "Food Delivery"

    def test_no_match_returns_none(self, coffee_rules):
        assert categorize(_txn("Whole Foods"), coffee_rules) is None

    def test_empty_rule_set_returns_none(self):
        assert categorize(_txn("Starbucks"), []) is None

    def test_falls_back_to_name_without_merchant(self):
        rules = [_rule(1, "netflix", "Streaming")]
        txn = _txn(merchant_name=None, name="NETFLIX.COM 866-579-7172")
        assert match_text(txn) == "NETFLIX.COM 866-579-7172"
        assert categorize(txn, rules) == "Streaming"

    def test_blank_merchant_name_falls_back_to_name(self):
        txn = _txn(merchant_name="   ", name="Shell Oil 5521")
        assert match_text(txn) == "Shell Oil 5521"

    def test_result_is_stable_across_runs(self, coffee_rules):
        txn = _txn("Starbucks #221")
        first = categorize(txn, coffee_rules)
        assert all(categorize(txn, coffee_rules) == first for _ in range(5))

    def test_input_order_does_not_matter(self, coffee_rules):
        txn = _txn("Starbucks #221")
        assert categorize(txn, list(reversed(coffee_rules))) == categorize(txn, coffee_rules)


class TestRuleOrdering:
    """Deterministic ordering and tie-breaks."""

    def test_priority_tie_broken_by_creation_time(self):
        older = _rule(5, "shell", "Fuel", created_at=BASE)
        newer = _rule(3, "shell", "Car", created_at=BASE + timedelta(minutes=1))
        assert categorize(_txn("Shell"), [newer, older]) == "Fuel"

    def test_full_tie_broken_by_id(self):
        a = _rule(7, "shell", "Fuel")
        b = _rule(4, "shell", "Car")
        assert [r.id for r in order_rules([a, b])] == [4, 7]

    def test_mixed_aware_and_naive_timestamps(self):
        # 10:00 at UTC+2 is 08:00 UTC, an hour before the naive 09:00.
        plus_two = timezone(timedelta(hours=2))
        aware = _rule(1, "x", "A", created_at=datetime(2024, 3, 1, 10, 0, tzinfo=plus_two))
        naive = _rule(2, "x", "B", created_at=datetime(2024, 3, 1, 9, 0))
        assert [r.id for r in order_rules([naive, aware])] == [1, 2]

    def test_order_rules_does_not_mutate_input(self, coffee_rules):
        snapshot = list(coffee_rules)
        ordered = order_rules(coffee_rules)
        assert coffee_rules == snapshot
        assert [r.id for r in ordered] == [1, 2]


class TestInvalidRules:
    """Broken patterns are skipped and reported, never raised."""

    def test_invalid_regex_does_not_raise(self):
        rules = [_rule(1, "(invalid", "Broken", is_regex=True)]
        assert categorize(_txn("Starbucks"), rules) is None

    def test_invalid_regex_does_not_block_other_rules(self):
        rules = [
            _rule(1, "(invalid", "Broken", is_regex=True, priority=1),
            _rule(2, "starbucks", "Coffee", priority=2),
        ]
        assert categorize(_txn("Starbucks"), rules) == "Coffee"

    def test_compile_rule_reports_skip_reason(self):
        compiled = compile_rule(_rule(1, "(invalid", "Broken", is_regex=True))
        assert not compiled.usable
        assert compiled.skip_reason
        assert not compiled.matches("(invalid")

    def test_empty_pattern_is_skipped(self):
        compiled = compile_rule(_rule(1, "  ", "Anything"))
        assert not compiled.usable
        assert compiled.skip_reason == "empty merchant pattern"

    def test_compile_rules_collects_errors_and_logs(self, caplog):
        rules = [
            _rule(1, "(invalid", "Broken", is_regex=True),
            _rule(2, "starbucks", "Coffee"),
        ]
        with caplog.at_level(logging.WARNING, logger="fintrack"):
            rule_set = compile_rules(rules)

        assert [entry.rule.id for entry in rule_set.compiled] == [2]
        assert len(rule_set.errors) == 1
        assert rule_set.errors[0].rule_id == 1
        assert rule_set.errors[0].error_code == "RULE_001"
        assert any("invalid pattern" in r.getMessage() for r in caplog.records)


class TestFallbackCategory:
    def test_uses_bank_mapping_when_available(self):
        txn = _txn("Shell")
        txn.categories = ["Travel", "Gas Stations"]
        assert fallback_category(txn, "Uncategorized") == "Travel & Lifestyle"

    def test_uses_default_label_without_bank_categories(self):
        assert fallback_category(_txn("Shell"), "Uncategorized") == "Uncategorized"


class TestCategorizationService:
    """Batch and single-transaction categorization against the database."""

    @pytest.fixture
    def service(self, session_factory):
        return CategorizationService(
            SQLModelTransactionRepository(session_factory),
            SQLModelCategoryRuleRepository(session_factory),
        )

    def test_recategorize_writes_only_changes(
        self, service, session_factory, user, rule_factory, transaction_factory
    ):
        rule_factory("Starbucks", "Coffee", priority=1)
        rule_factory("^Star.*", "Retail", is_regex=True, priority=2)
        coffee = transaction_factory(4.5, merchant_name="Starbucks #221")
        mall = transaction_factory(80.0, merchant_name="Starlight Mall")
        already = transaction_factory(3.0, merchant_name="Starbucks", primary_category="Coffee")
        other = transaction_factory(20.0, merchant_name="Whole Foods")

        report = service.recategorize_user(user.id)

        assert report.examined == 4
        assert report.changed == 2
        assert report.unmatched == 1
        assert report.assignments == {coffee.id: "Coffee", mall.id: "Retail"}

        repo = SQLModelTransactionRepository(session_factory)
        assert repo.get_by_id(already.id, user_id=user.id).primary_category == "Coffee"
        assert repo.get_by_id(other.id, user_id=user.id).primary_category is None

    def test_second_run_is_a_no_op(self, service, user, rule_factory, transaction_factory):
        rule_factory("Starbucks", "Coffee")
        transaction_factory(4.5, merchant_name="Starbucks")

        first = service.recategorize_user(user.id)
        second = service.recategorize_user(user.id)

        assert first.changed == 1
        assert second.changed == 0
        assert second.assignments == {}

    def test_rule_overwrites_primary_category_only(
        self, service, session_factory, user, rule_factory, transaction_factory
    ):
        rule_factory("Starbucks", "Coffee")
        txn = transaction_factory(
            4.5,
            merchant_name="Starbucks",
            primary_category="Food & Dining",
            categories=["Food and Drink", "Coffee Shop"],
        )

        service.recategorize_user(user.id)

        stored = SQLModelTransactionRepository(session_factory).get_by_id(txn.id, user_id=user.id)
        assert stored.primary_category == "Coffee"
        assert stored.categories == ["Food and Drink", "Coffee Shop"]
        assert stored.detailed_category is None

    def test_default_label_applies_only_to_uncategorized(
        self, service, session_factory, user, transaction_factory
    ):
        bare = transaction_factory(10.0, merchant_name="Corner Shop")
        mapped = transaction_factory(
            30.0, merchant_name="Shell", categories=["Travel", "Gas Stations"]
        )
        kept = transaction_factory(12.0, merchant_name="Bookstore", primary_category="Books")

        report = service.recategorize_user(user.id, default_label="Uncategorized")

        repo = SQLModelTransactionRepository(session_factory)
        assert repo.get_by_id(bare.id, user_id=user.id).primary_category == "Uncategorized"
        assert repo.get_by_id(mapped.id, user_id=user.id).primary_category == "Travel & Lifestyle"
        assert repo.get_by_id(kept.id, user_id=user.id).primary_category == "Books"
        assert report.defaulted == 2

    def test_only_uncategorized_skips_categorized_rows(
        self, service, user, rule_factory, transaction_factory
    ):
        rule_factory("Starbucks", "Coffee")
        transaction_factory(4.5, merchant_name="Starbucks", primary_category="Snacks")
        fresh = transaction_factory(5.0, merchant_name="Starbucks")

        report = service.recategorize_user(user.id, only_uncategorized=True)

        assert report.examined == 1
        assert report.assignments == {fresh.id: "Coffee"}

    def test_invalid_rule_reported_in_batch(self, service, user, rule_factory, transaction_factory):
        rule_factory("(invalid", "Broken", is_regex=True, priority=1)
        rule_factory("Starbucks", "Coffee", priority=2)
        transaction_factory(4.5, merchant_name="Starbucks")

        report = service.recategorize_user(user.id)

        assert report.changed == 1
        assert len(report.rule_errors) == 1
        assert report.rule_errors[0].pattern == "(invalid"

    def test_rules_are_scoped_per_user(
        self, service, session_factory, user, user_factory, account_factory, rule_factory,
        transaction_factory,
    ):
        other = user_factory()
        other_account = account_factory(owner=other)
        rule_factory("Starbucks", "Coffee", owner=other)
        txn = transaction_factory(4.5, merchant_name="Starbucks")
        foreign = transaction_factory(
            4.5, merchant_name="Starbucks", owner=other, account_id=other_account.id
        )

        assert service.recategorize_user(user.id).changed == 0
        assert service.recategorize_user(other.id).assignments == {foreign.id: "Coffee"}
        stored = SQLModelTransactionRepository(session_factory).get_by_id(txn.id, user_id=user.id)
        assert stored.primary_category is None

    def test_categorize_transaction(self, service, user, rule_factory, transaction_factory):
        rule_factory("Starbucks", "Coffee")
        txn = transaction_factory(4.5, merchant_name="Starbucks #221")

        assert service.categorize_transaction(txn.id, user_id=user.id) == "Coffee"

    def test_categorize_missing_transaction_raises(self, service, user):
        with pytest.raises(NotFoundError):
            service.categorize_transaction(999, user_id=user.id)

    def test_storage_errors_propagate(self, service, user, rule_factory, monkeypatch):
        rule_factory("Starbucks", "Coffee")
        error = OperationalError("SELECT transaction", {}, Exception("database is locked"))

        def locked(**kwargs):
            raise error

        monkeypatch.setattr(service.transaction_repo, "search", locked)

        with pytest.raises(OperationalError) as exc_info:
            service.recategorize_user(user.id)
        assert exc_info.value is error
