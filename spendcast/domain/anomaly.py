"""Anomaly detection - flags a proposed transaction against its merchant/category history"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from spendcast.domain.exceptions import InsufficientDataError, InvalidInputError
from spendcast.domain.history import recent_same_merchant
from spendcast.domain.models import (
    AnomalyResult,
    Baseline,
    CategoryBudget,
    Comparison,
    HistoryEntry,
    MerchantHistoryWindow,
    Severity,
    Transaction,
)
from spendcast.domain.statistics import ZERO_VARIANCE_SENTINEL, mean, z_score

logger = logging.getLogger(__name__)

MEDIUM_Z = 1.5
HIGH_Z = 3.0
MIN_MERCHANT_POINTS = 3
MIN_BASELINE_POINTS = 2
BUDGET_SHARE = 0.5

DUPLICATE_SUSPECT = "duplicate_suspect"
FREQUENT_VISITS = "frequent_visits"
UNUSUAL_TIME = "unusual_time"
NEW_MERCHANT = "new_merchant"
NEW_CATEGORY = "new_category"


@dataclass(frozen=True)
class AnomalyThresholds:
    """Tunable cut-offs; defaults are product-tuned, not physical constants"""

    medium_z: float = MEDIUM_Z
    high_z: float = HIGH_Z
    zero_variance_sentinel: float = ZERO_VARIANCE_SENTINEL
    min_merchant_points: int = MIN_MERCHANT_POINTS
    min_baseline_points: int = MIN_BASELINE_POINTS
    budget_share: float = BUDGET_SHARE
    duplicate_window_hours: float = 2.0
    frequent_visit_count: int = 5
    frequent_visit_days: int = 7
    unusual_hour_start: int = 0  # inclusive, candidate clock hour
    unusual_hour_end: int = 5  # inclusive
    new_merchant_multiple: float = 3.0
    dormant_category_days: int = 30


SeverityRule = Tuple[Callable[[float], bool], Severity]


def severity_rules(thresholds: AnomalyThresholds) -> List[SeverityRule]:
    """
    Ordered z-score rules, first match wins, LOW when none match.

    Bounds are inclusive on the more severe side: a z exactly on a
    threshold lands in the higher tier.
    """
    return [
        (lambda z: z >= thresholds.high_z, Severity.HIGH),
        (lambda z: z >= thresholds.medium_z, Severity.MEDIUM),
    ]


# Keyed by (severity, baseline, budget rule fired). Only reachable combinations are listed:
# the budget rule lifts severity to at least MEDIUM, and a missing baseline can only be
# MEDIUM through the budget rule.
REASONS: Dict[Tuple[Severity, Baseline, bool], str] = {
    (Severity.LOW, Baseline.NONE, False): "First time seeing a purchase like this, so there is nothing to compare it with yet",
    (Severity.MEDIUM, Baseline.NONE, True): "First purchase like this, and it uses more than half of what is left in the budget",
    (Severity.LOW, Baseline.MERCHANT, False): "In line with what you usually spend at this merchant",
    (Severity.MEDIUM, Baseline.MERCHANT, False): "Noticeably more than you usually spend at this merchant",
    (Severity.HIGH, Baseline.MERCHANT, False): "Far more than you usually spend at this merchant",
    (Severity.MEDIUM, Baseline.MERCHANT, True): "Uses more than half of what is left in this category's budget",
    (Severity.HIGH, Baseline.MERCHANT, True): "Far more than usual at this merchant, and it uses more than half of the remaining budget",
    (Severity.LOW, Baseline.CATEGORY, False): "In line with what you usually spend in this category",
    (Severity.MEDIUM, Baseline.CATEGORY, False): "Noticeably more than you usually spend in this category",
    (Severity.HIGH, Baseline.CATEGORY, False): "Far more than you usually spend in this category",
    (Severity.MEDIUM, Baseline.CATEGORY, True): "Uses more than half of what is left in this category's budget",
    (Severity.HIGH, Baseline.CATEGORY, True): "Far more than usual in this category, and it uses more than half of the remaining budget",
}


def classify_z(z: float, rules: Iterable[SeverityRule]) -> Severity:
    for predicate, severity in rules:
        if predicate(z):
            return severity
    return Severity.LOW


class AnomalyDetector:
    """Classifies a single proposed transaction; never raises for well-formed input"""

    def __init__(self, thresholds: Optional[AnomalyThresholds] = None):
        self.thresholds = thresholds or AnomalyThresholds()
        self.rules = severity_rules(self.thresholds)

    def evaluate(
        self,
        candidate: Transaction,
        history: MerchantHistoryWindow,
        category_budget: Optional[CategoryBudget] = None,
    ) -> AnomalyResult:
        """
        Compare `candidate` with its history and budget headroom.

        Population: same-merchant amounts when there are at least
        `min_merchant_points` of them, otherwise same-category amounts.
        The history must not contain the candidate itself.
        """
        if history.category_id != candidate.category_id:
            raise InvalidInputError(
                f"History for {history.category_id.value} cannot judge a {candidate.category_id.value} transaction"
            )
        if category_budget is not None and category_budget.category_id != candidate.category_id:
            raise InvalidInputError(
                f"Budget for {category_budget.category_id.value} cannot judge a {candidate.category_id.value} transaction"
            )

        merchant_values = history.merchant_amounts()
        if len(merchant_values) >= self.thresholds.min_merchant_points:
            values, baseline = merchant_values, Baseline.MERCHANT
        else:
            values, baseline = history.category_amounts(), Baseline.CATEGORY

        escalated = self.exceeds_remaining_budget(candidate, history, category_budget)
        flags = self.flag_signals(candidate, history.entries)

        if len(values) >= self.thresholds.min_baseline_points:
            try:
                z = z_score(candidate.amount, values, self.thresholds.zero_variance_sentinel)
                average = mean(values)
            except InsufficientDataError as e:
                logger.debug("No baseline for %s: %s", candidate.id, e)
            else:
                severity = classify_z(z, self.rules)
                if escalated and severity.rank < Severity.MEDIUM.rank:
                    severity = Severity.MEDIUM
                return AnomalyResult(
                    severity=severity,
                    reason=REASONS[(severity, baseline, escalated)],
                    comparison=Comparison(
                        current=candidate.amount,
                        average=average,
                        multiplier=candidate.amount / average if average > 0 else None,
                    ),
                    baseline=baseline,
                    budget_escalated=escalated,
                    z_score=z,
                    transaction_id=candidate.id,
                    amount=candidate.amount,
                    category_id=candidate.category_id,
                    flags=flags,
                )

        # Too sparse for a baseline: never fabricate one from zero or one point
        severity = Severity.MEDIUM if escalated else Severity.LOW
        return AnomalyResult(
            severity=severity,
            reason=REASONS[(severity, Baseline.NONE, escalated)],
            comparison=None,
            baseline=Baseline.NONE,
            budget_escalated=escalated,
            z_score=None,
            transaction_id=candidate.id,
            amount=candidate.amount,
            category_id=candidate.category_id,
            flags=flags,
        )

    def exceeds_remaining_budget(
        self,
        candidate: Transaction,
        history: MerchantHistoryWindow,
        category_budget: Optional[CategoryBudget],
    ) -> bool:
        """True when the candidate alone takes more than `budget_share` of what is left"""
        if category_budget is None or not category_budget.has_limit:
            return False
        remaining = max(category_budget.monthly_limit - history.period_spent, 0)
        return candidate.amount > self.thresholds.budget_share * remaining

    def flag_signals(self, candidate: Transaction, entries: Iterable[HistoryEntry]) -> Tuple[str, ...]:
        """
        Informational signals that never change severity.

        `entries` is the candidate's category window, so the new-merchant and
        dormant-category checks only see spend in that category.
        """
        entries = list(entries)
        flags = []

        nearby = recent_same_merchant(
            entries, candidate, timedelta(hours=self.thresholds.duplicate_window_hours)
        )
        if any(e.amount == candidate.amount for e in nearby):
            flags.append(DUPLICATE_SUSPECT)

        this_week = recent_same_merchant(
            entries, candidate, timedelta(days=self.thresholds.frequent_visit_days)
        )
        if len(this_week) >= self.thresholds.frequent_visit_count:
            flags.append(FREQUENT_VISITS)

        t = self.thresholds
        if t.unusual_hour_start <= candidate.timestamp.hour <= t.unusual_hour_end:
            flags.append(UNUSUAL_TIME)

        if entries and not any(e.merchant_key == candidate.merchant_key for e in entries):
            if candidate.amount > t.new_merchant_multiple * mean([e.amount for e in entries]):
                flags.append(NEW_MERCHANT)

        dormant_since = candidate.timestamp - timedelta(days=t.dormant_category_days)
        if entries and all(e.timestamp <= dormant_since for e in entries):
            flags.append(NEW_CATEGORY)

        return tuple(flags)
