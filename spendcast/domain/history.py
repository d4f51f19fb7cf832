"""Merchant history windows - bounded views over a user's transaction log"""

from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from spendcast.domain.models import (
    CategoryBudget,
    HistoryEntry,
    MerchantHistoryWindow,
    Transaction,
)
from spendcast.utils.date_utils import as_date

DEFAULT_MAX_VISITS = 50
DEFAULT_LOOKBACK_DAYS = 180


def category_spent_in_period(
    transactions: Iterable[Transaction],
    candidate: Transaction,
    budget: CategoryBudget,
) -> int:
    """Spend in the candidate's category from budget start up to the candidate, candidate excluded"""
    day = as_date(candidate.timestamp)
    return sum(
        t.amount
        for t in transactions
        if t.id != candidate.id
        and t.category_id == candidate.category_id
        and budget.period_start <= as_date(t.timestamp) <= min(day, budget.period_end)
        and t.timestamp <= candidate.timestamp
    )


def build_history_window(
    transactions: Iterable[Transaction],
    candidate: Transaction,
    budget: Optional[CategoryBudget] = None,
    max_visits: int = DEFAULT_MAX_VISITS,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> MerchantHistoryWindow:
    """
    Build the comparison window for a proposed transaction.

    Keeps same-category transactions dated inside the lookback and not later
    than the candidate, then the most recent `max_visits` of them. The
    candidate itself is never part of its own history.
    """
    transactions = list(transactions)
    since = candidate.timestamp - timedelta(days=lookback_days)

    relevant = sorted(
        (
            t
            for t in transactions
            if t.id != candidate.id
            and t.category_id == candidate.category_id
            and since <= t.timestamp <= candidate.timestamp
        ),
        key=lambda t: t.timestamp,
    )
    if max_visits > 0:
        relevant = relevant[-max_visits:]

    period_spent = 0
    if budget is not None and budget.category_id == candidate.category_id:
        period_spent = category_spent_in_period(transactions, candidate, budget)

    return MerchantHistoryWindow(
        merchant_key=candidate.merchant_key,
        category_id=candidate.category_id,
        entries=tuple(
            HistoryEntry(
                timestamp=t.timestamp,
                amount=t.amount,
                merchant_key=t.merchant_key,
                category_id=t.category_id,
            )
            for t in relevant
        ),
        period_spent=period_spent,
    )


class HistoryCache:
    """
    Caller-owned memo of history windows over one transaction snapshot.

    Create one per snapshot and drop it when the log changes; nothing is
    shared between instances.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        max_visits: int = DEFAULT_MAX_VISITS,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ):
        self.transactions: Tuple[Transaction, ...] = tuple(transactions)
        self.max_visits = max_visits
        self.lookback_days = lookback_days
        self._windows: Dict[tuple, MerchantHistoryWindow] = {}
        self.hits = 0

    def window_for(
        self,
        candidate: Transaction,
        budget: Optional[CategoryBudget] = None,
    ) -> MerchantHistoryWindow:
        key = (candidate.id, candidate.timestamp, candidate.merchant_key, candidate.category_id, budget)
        window = self._windows.get(key)
        if window is not None:
            self.hits += 1
            return window

        window = build_history_window(
            self.transactions,
            candidate,
            budget=budget,
            max_visits=self.max_visits,
            lookback_days=self.lookback_days,
        )
        self._windows[key] = window
        return window


def recent_same_merchant(
    entries: Iterable[HistoryEntry],
    candidate: Transaction,
    within: timedelta,
) -> List[HistoryEntry]:
    """Entries at the candidate's merchant dated within `within` before (or at) the candidate"""
    return [
        e
        for e in entries
        if e.merchant_key == candidate.merchant_key
        and timedelta(0) <= candidate.timestamp - e.timestamp <= within
    ]
