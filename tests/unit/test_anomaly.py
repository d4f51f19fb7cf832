"""Unit tests for anomaly detection"""

import itertools
import pytest
from datetime import datetime, timedelta
from spendcast.domain.anomaly import (
    DUPLICATE_SUSPECT,
    FREQUENT_VISITS,
    NEW_CATEGORY,
    NEW_MERCHANT,
    REASONS,
    UNUSUAL_TIME,
    AnomalyDetector,
    AnomalyThresholds,
    classify_z,
    severity_rules,
)
from spendcast.domain.exceptions import InvalidInputError
from spendcast.domain.history import build_history_window
from spendcast.domain.models import Baseline, Category, CategoryBudget, Severity

CANDIDATE_AT = datetime(2025, 6, 10, 12, 0)


def evaluate(candidate, history, budget=None, thresholds=None):
    window = build_history_window(history, candidate, budget=budget)
    return AnomalyDetector(thresholds).evaluate(candidate, window, budget)


def past(make_transaction, amounts, merchant="Biedronka", category_id=Category.GROCERIES):
    """One transaction per day before the candidate, oldest first"""
    return [
        make_transaction(
            amount,
            timestamp=CANDIDATE_AT - timedelta(days=len(amounts) - i),
            merchant=merchant,
            category_id=category_id,
        )
        for i, amount in enumerate(amounts)
    ]


def test_constant_history_large_purchase_is_high(make_transaction):
    """Zero spread falls back to the sentinel z-score"""
    history = past(make_transaction, [1000, 1000, 1000, 1000])
    candidate = make_transaction(5000, timestamp=CANDIDATE_AT)

    result = evaluate(candidate, history)

    assert result.severity == Severity.HIGH
    assert result.baseline == Baseline.MERCHANT
    assert result.z_score == 4.0
    assert result.comparison.current == 5000
    assert result.comparison.average == 1000
    assert result.comparison.multiplier == 5.0
    assert result.reason == REASONS[(Severity.HIGH, Baseline.MERCHANT, False)]


@pytest.mark.parametrize("size", [0, 1])
def test_sparse_history_is_low_without_comparison(make_transaction, size):
    history = past(make_transaction, [1000] * size)
    candidate = make_transaction(999999, timestamp=CANDIDATE_AT)

    result = evaluate(candidate, history)

    assert result.severity == Severity.LOW
    assert result.baseline == Baseline.NONE
    assert result.comparison is None
    assert result.z_score is None


def test_evaluate_never_raises_for_any_history_size(make_transaction):
    amounts = [0, 1500, 1500, 40000, 7, 1200, 1200]
    for size in range(len(amounts) + 1):
        for candidate_amount in (0, 1500, 100000):
            history = past(make_transaction, amounts[:size])
            candidate = make_transaction(candidate_amount, timestamp=CANDIDATE_AT)
            result = evaluate(candidate, history)
            assert result.severity in Severity


def test_z_thresholds_are_inclusive_on_the_severe_side(make_transaction):
    # mean 20, sample stddev 10
    history = past(make_transaction, [10, 20, 30])

    at_medium = evaluate(make_transaction(35, timestamp=CANDIDATE_AT), history)
    at_high = evaluate(make_transaction(50, timestamp=CANDIDATE_AT), history)
    below = evaluate(make_transaction(34, timestamp=CANDIDATE_AT), history)

    assert at_medium.severity == Severity.MEDIUM
    assert at_high.severity == Severity.HIGH
    assert below.severity == Severity.LOW


def test_falls_back_to_category_when_merchant_history_is_short(make_transaction):
    history = past(make_transaction, [2000, 2200], merchant="Lidl") + past(
        make_transaction, [1800, 2100], merchant="Auchan"
    )
    candidate = make_transaction(2000, timestamp=CANDIDATE_AT, merchant="Lidl")

    result = evaluate(candidate, history)

    assert result.baseline == Baseline.CATEGORY
    assert result.comparison.average == pytest.approx(2025.0)
    assert result.severity == Severity.LOW


def test_budget_share_escalates_to_medium(make_transaction, weekly_grocery_history, june_groceries_budget):
    """5250 is typical spend but more than half of the 4500 left"""
    budget = CategoryBudget.for_month(Category.GROCERIES, 10000, 2025, 6)
    candidate = make_transaction(5250, timestamp=CANDIDATE_AT)

    result = evaluate(candidate, weekly_grocery_history, budget=budget)

    assert result.z_score == pytest.approx(0.0)
    assert result.severity == Severity.MEDIUM
    assert result.budget_escalated is True
    assert result.reason == REASONS[(Severity.MEDIUM, Baseline.MERCHANT, True)]

    relaxed = evaluate(candidate, weekly_grocery_history, budget=june_groceries_budget)
    assert relaxed.severity == Severity.LOW
    assert relaxed.budget_escalated is False


def test_budget_escalation_applies_without_history(make_transaction):
    budget = CategoryBudget.for_month(Category.GROCERIES, 1000, 2025, 6)
    candidate = make_transaction(600, timestamp=CANDIDATE_AT)

    result = evaluate(candidate, [], budget=budget)

    assert result.severity == Severity.MEDIUM
    assert result.baseline == Baseline.NONE
    assert result.budget_escalated is True


def test_budget_escalation_never_lowers_high(make_transaction):
    history = past(make_transaction, [1000, 1000, 1000])
    budget = CategoryBudget.for_month(Category.GROCERIES, 2000, 2025, 6)

    result = evaluate(make_transaction(5000, timestamp=CANDIDATE_AT), history, budget=budget)

    assert result.severity == Severity.HIGH
    assert result.budget_escalated is True


@pytest.mark.parametrize("limit", [None, 0])
def test_unbounded_budget_never_escalates(make_transaction, limit):
    budget = CategoryBudget.for_month(Category.GROCERIES, limit, 2025, 6)

    result = evaluate(make_transaction(600, timestamp=CANDIDATE_AT), [], budget=budget)

    assert result.budget_escalated is False
    assert result.severity == Severity.LOW


def test_mismatched_budget_category_raises(make_transaction):
    candidate = make_transaction(600, timestamp=CANDIDATE_AT)
    budget = CategoryBudget.for_month(Category.TRANSPORT, 1000, 2025, 6)

    with pytest.raises(InvalidInputError):
        AnomalyDetector().evaluate(candidate, build_history_window([], candidate), budget)


def test_duplicate_and_frequent_visit_flags(make_transaction):
    history = [
        make_transaction(1500, timestamp=CANDIDATE_AT - timedelta(days=d))
        for d in (6, 5, 3, 2)
    ]
    history.append(make_transaction(2599, timestamp=CANDIDATE_AT - timedelta(minutes=30)))
    candidate = make_transaction(2599, timestamp=CANDIDATE_AT)

    result = evaluate(candidate, history)

    assert DUPLICATE_SUSPECT in result.flags
    assert FREQUENT_VISITS in result.flags


def test_flags_do_not_change_severity(make_transaction):
    history = past(make_transaction, [1000, 1000, 1000])
    history.append(make_transaction(1000, timestamp=CANDIDATE_AT - timedelta(minutes=5)))

    result = evaluate(make_transaction(1000, timestamp=CANDIDATE_AT), history)

    assert result.flags == (DUPLICATE_SUSPECT,)
    assert result.severity == Severity.LOW


def test_custom_thresholds(make_transaction):
    history = past(make_transaction, [10, 20, 30])
    thresholds = AnomalyThresholds(medium_z=1.0, high_z=1.2)

    result = evaluate(make_transaction(33, timestamp=CANDIDATE_AT), history, thresholds=thresholds)

    assert result.severity == Severity.HIGH


def test_severity_rules_first_match_wins():
    rules = severity_rules(AnomalyThresholds())

    assert classify_z(-10.0, rules) == Severity.LOW
    assert classify_z(1.49, rules) == Severity.LOW
    assert classify_z(1.5, rules) == Severity.MEDIUM
    assert classify_z(2.99, rules) == Severity.MEDIUM
    assert classify_z(3.0, rules) == Severity.HIGH


def test_reason_table_covers_exactly_the_reachable_combinations():
    """Escalation floors severity at MEDIUM; a missing baseline is LOW or escalated MEDIUM"""
    reachable = {
        (severity, baseline, escalated)
        for severity, baseline, escalated in itertools.product(
            Severity, (Baseline.MERCHANT, Baseline.CATEGORY), (False, True)
        )
        if not (escalated and severity == Severity.LOW)
    }
    reachable |= {(Severity.LOW, Baseline.NONE, False), (Severity.MEDIUM, Baseline.NONE, True)}

    assert set(REASONS) == reachable
    assert len(set(REASONS.values())) >= 10


def test_night_purchase_is_flagged_without_changing_severity(make_transaction):
    history = past(make_transaction, [1000, 1000, 1000])
    candidate = make_transaction(1000, timestamp=datetime(2025, 6, 10, 3, 15))

    result = evaluate(candidate, history)

    assert UNUSUAL_TIME in result.flags
    assert result.severity == Severity.LOW


def test_daytime_purchase_is_not_unusual_time(make_transaction):
    history = past(make_transaction, [1000, 1000, 1000])

    result = evaluate(make_transaction(1000, timestamp=CANDIDATE_AT), history)

    assert UNUSUAL_TIME not in result.flags


def test_first_large_purchase_at_new_merchant(make_transaction):
    history = past(make_transaction, [1000, 1200, 800])

    large = evaluate(make_transaction(5000, timestamp=CANDIDATE_AT, merchant="Apple Store"), history)
    modest = evaluate(make_transaction(2500, timestamp=CANDIDATE_AT, merchant="Apple Store"), history)

    assert NEW_MERCHANT in large.flags
    assert NEW_MERCHANT not in modest.flags


def test_first_spend_in_dormant_category(make_transaction):
    history = [make_transaction(1000, timestamp=CANDIDATE_AT - timedelta(days=40))]

    result = evaluate(make_transaction(1000, timestamp=CANDIDATE_AT), history)

    assert NEW_CATEGORY in result.flags
    assert result.severity == Severity.LOW
    assert result.baseline == Baseline.NONE


def test_recent_category_spend_is_not_dormant(make_transaction):
    history = [
        make_transaction(1000, timestamp=CANDIDATE_AT - timedelta(days=40)),
        make_transaction(1000, timestamp=CANDIDATE_AT - timedelta(days=3)),
    ]

    result = evaluate(make_transaction(1000, timestamp=CANDIDATE_AT), history)

    assert NEW_CATEGORY not in result.flags


def test_empty_history_has_no_flags(make_transaction):
    result = evaluate(make_transaction(999999, timestamp=CANDIDATE_AT), [])

    assert result.flags == ()


def test_signal_thresholds_are_tunable(make_transaction):
    history = [make_transaction(1000, timestamp=CANDIDATE_AT - timedelta(days=10))]
    thresholds = AnomalyThresholds(unusual_hour_start=11, unusual_hour_end=13, dormant_category_days=7)

    result = evaluate(make_transaction(1000, timestamp=CANDIDATE_AT), history, thresholds=thresholds)

    assert UNUSUAL_TIME in result.flags
    assert NEW_CATEGORY in result.flags
