"""Spending pattern analysis - per-category statistics, trends and outliers"""

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from insight_engine.config import settings
from insight_engine.domain.ingest import coerce_transactions
from insight_engine.domain.models import SpendingPattern, Transaction
from insight_engine.utils.date_utils import month_key, weeks_between

UNCATEGORIZED = "Uncategorized"

INCREASING = "increasing"
DECREASING = "decreasing"
STABLE = "stable"


def expenses_only(transactions: Optional[Iterable[Any]]) -> List[Transaction]:
    """Coerce input and keep expense records"""
    return [t for t in coerce_transactions(transactions) if t.type == "expense"]


def _chronological(transactions: List[Transaction]) -> List[Transaction]:
    # Undated records keep their input position after dated ones
    return sorted(transactions, key=lambda t: (t.date is None, t.date or 0))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_trend(
    amounts: Sequence[float],
    threshold: float | None = None,
    min_points: int | None = None,
) -> str:
    """
    Coarse first-half vs second-half trend over a chronological sequence.

    The first half takes the extra element of an odd-length sequence. A
    relative change above the threshold is increasing, below its negative
    is decreasing. Fewer than min_points values is always stable.
    """
    threshold = settings.trend_change_threshold if threshold is None else threshold
    min_points = settings.trend_min_points if min_points is None else min_points

    if len(amounts) < min_points:
        return STABLE

    split = len(amounts) - len(amounts) // 2
    first_mean = _mean(amounts[:split])
    second_mean = _mean(amounts[split:])

    if first_mean == 0:
        return INCREASING if second_mean > 0 else STABLE

    change = (second_mean - first_mean) / first_mean
    if change > threshold:
        return INCREASING
    if change < -threshold:
        return DECREASING
    return STABLE


def analyze_spending_patterns(transactions: Optional[Iterable[Any]]) -> List[SpendingPattern]:
    """
    Aggregate expense transactions into one SpendingPattern per category.

    Categories are reported in order of first appearance; a missing or empty
    category collapses into "Uncategorized". Frequency is transactions per
    week over the first-to-last date span, floored at one week.
    """
    by_category: Dict[str, List[Transaction]] = {}
    for txn in expenses_only(transactions):
        by_category.setdefault(txn.category or UNCATEGORIZED, []).append(txn)

    patterns = []
    for category, txns in by_category.items():
        ordered = _chronological(txns)
        amounts = [t.amount for t in ordered]
        dates = [t.date for t in ordered if t.date is not None]

        span_weeks = weeks_between(dates[0], dates[-1]) if len(dates) > 1 else 1.0
        total = sum(amounts)

        patterns.append(
            SpendingPattern(
                category=category,
                average_amount=total / len(amounts),
                frequency=len(amounts) / max(span_weeks, 1.0),
                trend=calculate_trend(amounts),
                total_spent=total,
                last_transaction_date=dates[-1] if dates else None,
                transaction_count=len(amounts),
            )
        )

    return patterns


def spending_statistics(amounts: Sequence[float]) -> Tuple[float, float]:
    """Population mean and standard deviation; std is 0 below two points"""
    if not amounts:
        return 0.0, 0.0
    mean = _mean(amounts)
    if len(amounts) < 2:
        return mean, 0.0
    variance = sum((a - mean) ** 2 for a in amounts) / len(amounts)
    return mean, math.sqrt(variance)


def detect_outliers(
    transactions: Optional[Iterable[Any]],
    std_multiplier: float | None = None,
) -> List[Transaction]:
    """
    Expense transactions deviating from the overall mean by more than
    std_multiplier population standard deviations (across all categories).
    """
    std_multiplier = settings.outlier_std_multiplier if std_multiplier is None else std_multiplier
    expenses = expenses_only(transactions)
    if len(expenses) < 2:
        return []

    mean, std = spending_statistics([t.amount for t in expenses])
    if std == 0:
        return []
    return [t for t in expenses if abs(t.amount - mean) > std_multiplier * std]


def monthly_totals(transactions: Optional[Iterable[Any]]) -> List[Tuple[str, float]]:
    """Expense totals per calendar month (YYYY-MM), oldest first"""
    totals: Dict[str, float] = {}
    for txn in expenses_only(transactions):
        if txn.date is None:
            continue
        key = month_key(txn.date)
        totals[key] = totals.get(key, 0.0) + txn.amount
    return sorted(totals.items())
