"""Spending insight generation - ranked advisory messages from transaction history"""

from typing import Any, Iterable, List, Optional

from insight_engine.config import settings
from insight_engine.domain.ingest import coerce_budgets
from insight_engine.domain.models import Budget, SpendingInsight, SpendingPattern, Transaction
from insight_engine.domain.patterns import (
    DECREASING,
    INCREASING,
    analyze_spending_patterns,
    calculate_trend,
    detect_outliers,
    expenses_only,
    monthly_totals,
)
from insight_engine.utils.text_utils import format_currency

MONTHLY_TREND_WINDOW = 3


def pattern_insights(patterns: List[SpendingPattern]) -> List[SpendingInsight]:
    """Top category, most frequent category and increasing-trend summary"""
    insights = []

    top_spending = max(patterns, key=lambda p: p.total_spent, default=None)
    if top_spending is not None and top_spending.total_spent > 0:
        insights.append(
            SpendingInsight(
                type="info",
                title="Top Spending Category",
                message=(
                    f"You spend the most on {top_spending.category} ({format_currency(top_spending.total_spent)}). "
                    "Consider reviewing this category for potential savings."
                ),
                confidence=0.9,
                actionable=True,
                action_text="Review Category",
                action_url="/transactions",
            )
        )

    frequent = [p for p in patterns if p.frequency > settings.frequent_spending_per_week]
    if frequent:
        most_frequent = max(frequent, key=lambda p: p.frequency)
        insights.append(
            SpendingInsight(
                type="tip",
                title="Frequent Spending Alert",
                message=(
                    f"You make frequent purchases in {most_frequent.category} "
                    f"({most_frequent.frequency:.1f} times per week). Consider setting up a budget for this category."
                ),
                confidence=0.8,
                actionable=True,
                action_text="Set Budget",
                action_url="/budgets",
            )
        )

    increasing = [p for p in patterns if p.trend == INCREASING]
    if increasing:
        insights.append(
            SpendingInsight(
                type="warning",
                title="Spending Trend Alert",
                message=(
                    f"Your spending is increasing in {len(increasing)} category(ies). "
                    "Monitor these trends to stay within budget."
                ),
                confidence=0.85,
                actionable=True,
                action_text="View Trends",
                action_url="/reports",
            )
        )

    return insights


def budget_insights(budgets: List[Budget]) -> List[SpendingInsight]:
    """One insight per budget that is over its limit or above the warning ratio"""
    insights = []

    for budget in budgets:
        if budget.limit <= 0:
            continue
        utilization = budget.spent / budget.limit

        if utilization > 1:
            insights.append(
                SpendingInsight(
                    type="warning",
                    title="Budget Exceeded",
                    message=(
                        f"You've exceeded your {budget.category} budget by "
                        f"{format_currency(budget.spent - budget.limit)}."
                    ),
                    confidence=1.0,
                    actionable=True,
                    action_text="Adjust Budget",
                    action_url="/budgets",
                    topic="budget",
                )
            )
        elif utilization > settings.budget_warning_ratio:
            insights.append(
                SpendingInsight(
                    type="info",
                    title="Budget Warning",
                    message=(
                        f"You're at {round(utilization * 100)}% of your {budget.category} budget. "
                        "Consider reducing spending."
                    ),
                    confidence=0.9,
                    actionable=True,
                    action_text="View Budget",
                    action_url="/budgets",
                    topic="budget",
                )
            )

    return insights


def trend_insights(expenses: List[Transaction]) -> List[SpendingInsight]:
    """Month-over-month trend across the last three months of history"""
    months = monthly_totals(expenses)
    if len(months) < MONTHLY_TREND_WINDOW:
        return []

    trend = calculate_trend([total for _, total in months[-MONTHLY_TREND_WINDOW:]])
    if trend == INCREASING:
        return [
            SpendingInsight(
                type="warning",
                title="Monthly Spending Increasing",
                message="Your monthly spending has been increasing over the last 3 months. Consider reviewing your expenses.",
                confidence=0.8,
                actionable=True,
                action_text="View Trends",
                action_url="/reports",
            )
        ]
    if trend == DECREASING:
        return [
            SpendingInsight(
                type="success",
                title="Great Job!",
                message="Your monthly spending has been decreasing over the last 3 months. Keep up the good work!",
                confidence=0.9,
                actionable=False,
            )
        ]
    return []


def anomaly_insights(expenses: List[Transaction]) -> List[SpendingInsight]:
    """Largest above-threshold transaction and a count of statistical outliers"""
    insights = []

    large = [t for t in expenses if t.amount > settings.large_transaction_threshold]
    if large:
        largest = max(large, key=lambda t: t.amount)
        insights.append(
            SpendingInsight(
                type="info",
                title="Large Transaction",
                message=(
                    f"You made a large transaction of {format_currency(largest.amount)} for {largest.name}. "
                    "Make sure this was intentional."
                ),
                confidence=0.7,
                actionable=True,
                action_text="Review Transaction",
                action_url="/transactions",
            )
        )

    outliers = detect_outliers(expenses)
    if outliers:
        insights.append(
            SpendingInsight(
                type="tip",
                title="Unusual Spending Pattern",
                message=(
                    f"You have {len(outliers)} transaction(s) that are significantly different "
                    "from your usual spending pattern."
                ),
                confidence=0.6,
                actionable=True,
                action_text="Review Transactions",
                action_url="/transactions",
            )
        )

    return insights


def generate_insights(
    transactions: Optional[Iterable[Any]],
    budgets: Optional[Iterable[Any]] = None,
) -> List[SpendingInsight]:
    """
    Main entry point: turn transaction history (and optional budgets) into
    insights ranked by descending confidence.

    Generation order (kept for equal confidence): pattern, budget, trend,
    anomaly. Only expense records are considered; without any the result is
    empty. Output depends only on the inputs, never on the current time.
    """
    expenses = expenses_only(transactions)
    if not expenses:
        return []

    insights: List[SpendingInsight] = []
    insights.extend(pattern_insights(analyze_spending_patterns(expenses)))
    insights.extend(budget_insights(coerce_budgets(budgets)))
    insights.extend(trend_insights(expenses))
    insights.extend(anomaly_insights(expenses))

    # sorted() is stable, so ties keep generation order
    return sorted(insights, key=lambda i: i.confidence, reverse=True)
