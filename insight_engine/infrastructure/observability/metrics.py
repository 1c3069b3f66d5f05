"""Prometheus metrics for insight volume, duplicate checks, categorization and the notification feed"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from insight_engine.domain.models import SmartNotification, SpendingInsight

# Analysis metrics
insights_generated_counter = Counter(
    "insights_generated_total",
    "Spending insights produced",
    ["type"],  # warning | info | success | tip
)

duplicate_checks_counter = Counter(
    "duplicate_checks_total",
    "Duplicate checks performed",
    ["outcome"],  # duplicate | unique
)

categorizations_counter = Counter(
    "categorizations_total",
    "Category lookups by answer source",
    ["source"],  # learned | keyword | none | oracle
)

oracle_failures_counter = Counter(
    "categorization_oracle_failures_total",
    "Failed calls to the hosted categorization service",
)

# Notification feed
notifications_created_counter = Counter(
    "notifications_created_total",
    "Notifications added to the feed",
    ["category"],
)

notifications_removed_counter = Counter(
    "notifications_removed_total",
    "Notifications removed from the feed",
    ["reason"],  # dismissed | expired
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_insights(insights: Iterable[SpendingInsight]) -> None:
    for insight in insights:
        insights_generated_counter.labels(type=insight.type).inc()


def record_duplicate_check(is_duplicate: bool) -> None:
    duplicate_checks_counter.labels(outcome="duplicate" if is_duplicate else "unique").inc()


def record_notifications(notifications: Iterable[SmartNotification]) -> None:
    for notification in notifications:
        notifications_created_counter.labels(category=notification.category).inc()


def record_expired(removed: int) -> None:
    """Cleanup sweep callback"""
    if removed:
        notifications_removed_counter.labels(reason="expired").inc(removed)
