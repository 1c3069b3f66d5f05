"""Smart notification feed - in-process store with read state, removal and expiry"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from insight_engine.config import settings
from insight_engine.domain.categorization import CategoryClassifier
from insight_engine.domain.duplicates import DuplicateDetector
from insight_engine.domain.ingest import coerce_accounts, coerce_budgets, coerce_transaction, coerce_transactions
from insight_engine.domain.models import SmartNotification, SpendingInsight
from insight_engine.utils.text_utils import format_currency

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Insight type -> notification type
_INSIGHT_TYPES = {"warning": "warning", "success": "success", "info": "info", "tip": "info"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_notification_id(kind: str) -> str:
    """Process-unique identifier prefixed with the notification kind"""
    return f"{kind}-{uuid.uuid4().hex}"


class CleanupHandle:
    """Handle for a running periodic cleanup; stop() cancels it"""

    def __init__(self, thread: threading.Thread, stop_event: threading.Event):
        self._thread = thread
        self._stop_event = stop_event

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Cancel future sweeps and wait for the worker to exit (idempotent)"""
        self._stop_event.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)


class NotificationStore:
    """
    Mutable collection of SmartNotifications keyed by id.

    Notifications are immutable values; marking as read swaps in a copy with
    read=True, so read state only ever moves from False to True. All methods
    are serialized through one re-entrant lock.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock: Clock = clock or _utcnow
        self._notifications: Dict[str, SmartNotification] = {}
        self._sequence: Dict[str, int] = {}
        self._counter = 0
        self._lock = threading.RLock()
        self._sweep_lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._notifications)

    def add(self, notification: SmartNotification) -> bool:
        """Store a notification; an id already present is left untouched"""
        with self._lock:
            if notification.id in self._notifications:
                logger.debug(f"Ignoring notification with duplicate id {notification.id}")
                return False
            self._notifications[notification.id] = notification
            self._counter += 1
            self._sequence[notification.id] = self._counter
            return True

    def get_notification(self, notification_id: str) -> Optional[SmartNotification]:
        with self._lock:
            return self._notifications.get(notification_id)

    def get_notifications(self) -> List[SmartNotification]:
        """All live notifications, most recent first"""
        with self._lock:
            return sorted(
                self._notifications.values(),
                key=lambda n: (n.timestamp, self._sequence[n.id]),
                reverse=True,
            )

    def get_unread_notifications(self) -> List[SmartNotification]:
        return [n for n in self.get_notifications() if not n.read]

    def get_notification_count(self) -> int:
        """Number of unread notifications"""
        with self._lock:
            return sum(1 for n in self._notifications.values() if not n.read)

    def mark_as_read(self, notification_id: str) -> None:
        with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is not None and not notification.read:
                self._notifications[notification_id] = replace(notification, read=True)

    def mark_all_as_read(self) -> None:
        with self._lock:
            for notification_id, notification in self._notifications.items():
                if not notification.read:
                    self._notifications[notification_id] = replace(notification, read=True)

    def remove_notification(self, notification_id: str) -> bool:
        """Delete a notification; unknown ids are a no-op. Returns whether one was removed"""
        with self._lock:
            self._sequence.pop(notification_id, None)
            return self._notifications.pop(notification_id, None) is not None

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Remove every notification whose expiry has passed; returns how many"""
        now = now or self.clock()
        with self._lock:
            expired = [
                notification_id
                for notification_id, notification in self._notifications.items()
                if notification.expires_at is not None and now > notification.expires_at
            ]
            for notification_id in expired:
                del self._notifications[notification_id]
                self._sequence.pop(notification_id, None)

        if expired:
            logger.info("Expired notifications removed", extra={"removed_count": len(expired)})
        return len(expired)

    def _sweep(self, on_sweep: Optional[Callable[[int], None]]) -> None:
        # A sweep still in progress means this tick is skipped, not queued
        if not self._sweep_lock.acquire(blocking=False):
            logger.debug("Skipping cleanup tick, previous sweep still running")
            return
        try:
            removed = self.cleanup_expired()
            if on_sweep is not None:
                on_sweep(removed)
        finally:
            self._sweep_lock.release()

    def start_cleanup(
        self,
        interval_seconds: float | None = None,
        on_sweep: Optional[Callable[[int], None]] = None,
    ) -> CleanupHandle:
        """
        Run cleanup_expired() every interval_seconds on a daemon thread.

        Returns a CleanupHandle; call stop() on it to cancel.
        """
        interval = interval_seconds if interval_seconds is not None else settings.notification_cleanup_interval_seconds
        if interval <= 0:
            raise ValueError("Cleanup interval must be positive")

        stop_event = threading.Event()

        def run() -> None:
            while not stop_event.wait(interval):
                try:
                    self._sweep(on_sweep)
                except Exception:
                    logger.exception("Notification cleanup sweep failed")

        thread = threading.Thread(target=run, name="notification-cleanup", daemon=True)
        thread.start()
        logger.info("Notification cleanup started", extra={"interval_seconds": interval})
        return CleanupHandle(thread, stop_event)


class NotificationService:
    """
    Generation entry points producing notifications from higher-level events.

    Every entry point returns the notifications it created and has already
    added them to the store.
    """

    def __init__(
        self,
        store: NotificationStore,
        detector: Optional[DuplicateDetector] = None,
        classifier: Optional[CategoryClassifier] = None,
    ):
        self.store = store
        self.detector = detector or DuplicateDetector()
        self.classifier = classifier or CategoryClassifier()

    def _build(self, kind: str, **fields: Any) -> SmartNotification:
        return SmartNotification(id=new_notification_id(kind), timestamp=self.store.clock(), **fields)

    def _publish(self, notifications: List[SmartNotification]) -> List[SmartNotification]:
        added = [n for n in notifications if self.store.add(n)]
        if added:
            logger.debug(f"Published {len(added)} notification(s)")
        return added

    def notify_transaction(
        self,
        new_transaction: Any,
        existing_transactions: Optional[Iterable[Any]],
        budgets: Optional[Iterable[Any]] = None,
    ) -> List[SmartNotification]:
        """Duplicate, size, budget, weekly category and category-suggestion signals for one transaction"""
        txn = coerce_transaction(new_transaction)
        if txn is None or existing_transactions is None:
            return []
        existing = coerce_transactions(existing_transactions)
        notifications = []

        # The host may pass history that already contains the new record
        history = [t for t in existing if not (txn.id and t.id == txn.id)]
        duplicate = self.detector.detect(txn, history)
        if duplicate.is_duplicate and duplicate.similar_transaction is not None:
            notifications.append(
                self._build(
                    "possible-duplicate",
                    type="warning",
                    title="Possible Duplicate",
                    message=(
                        f"{txn.name} for {format_currency(txn.amount)} looks like a duplicate of an existing "
                        f"transaction ({duplicate.reason})."
                    ),
                    priority="high",
                    category="transaction",
                    actionable=True,
                    action_text="Review Transaction",
                    action_url="/transactions",
                )
            )

        if txn.amount > settings.notification_large_transaction_threshold:
            notifications.append(
                self._build(
                    "large-transaction",
                    type="info",
                    title="Large Transaction",
                    message=f"You made a large transaction of {format_currency(txn.amount)} for {txn.name}.",
                    priority="medium",
                    category="transaction",
                    actionable=True,
                    action_text="View Transaction",
                    action_url="/transactions",
                )
            )

        budget = next((b for b in coerce_budgets(budgets) if b.category == txn.category and b.limit > 0), None)
        if budget is not None:
            new_spent = budget.spent + txn.amount
            utilization = new_spent / budget.limit
            if utilization > 1:
                notifications.append(
                    self._build(
                        "budget-exceeded",
                        type="warning",
                        title="Budget Exceeded",
                        message=(
                            f"You've exceeded your {budget.category} budget by "
                            f"{format_currency(new_spent - budget.limit)}."
                        ),
                        priority="high",
                        category="budget",
                        actionable=True,
                        action_text="View Budget",
                        action_url="/budgets",
                    )
                )
            elif utilization > settings.budget_warning_ratio:
                notifications.append(
                    self._build(
                        "budget-warning",
                        type="warning",
                        title="Budget Warning",
                        message=f"You're at {round(utilization * 100)}% of your {budget.category} budget.",
                        priority="medium",
                        category="budget",
                        actionable=True,
                        action_text="View Budget",
                        action_url="/budgets",
                    )
                )

        # Week window is anchored on the new transaction's own date
        anchor = txn.date or self.store.clock()
        if txn.category:
            week_spending = sum(
                t.amount
                for t in history
                if t.category == txn.category
                and t.date is not None
                and timedelta(0) <= anchor - t.date <= timedelta(days=7)
            )
            if week_spending > settings.notification_weekly_category_threshold:
                notifications.append(
                    self._build(
                        "spending-pattern",
                        type="info",
                        title="Spending Pattern Alert",
                        message=f"You've spent {format_currency(week_spending)} on {txn.category} this week.",
                        priority="low",
                        category="spending",
                        actionable=True,
                        action_text="View Category",
                        action_url="/transactions",
                    )
                )
        else:
            suggested = self.classifier.categorize(txn)
            if suggested is not None:
                notifications.append(
                    self._build(
                        "category-suggestion",
                        type="info",
                        title="Category Suggestion",
                        message=f"{txn.name} looks like {suggested}. Assign this category?",
                        priority="low",
                        category="transaction",
                        actionable=True,
                        action_text="Categorize",
                        action_url="/transactions",
                    )
                )

        return self._publish(notifications)

    def notify_daily_summary(
        self,
        transactions: Optional[Iterable[Any]],
        accounts: Optional[Iterable[Any]],
        budgets: Optional[Iterable[Any]] = None,
        day: Optional[datetime] = None,
    ) -> List[SmartNotification]:
        """At most three notifications: today's spending, low balances, budgets nearing their limit"""
        if transactions is None:
            return []
        now = self.store.clock()
        day = (day or now).date()
        todays = [t for t in coerce_transactions(transactions) if t.date is not None and t.date.date() == day]
        notifications = []

        total_spent = sum(t.amount for t in todays if t.type == "expense")
        if total_spent > 0:
            notifications.append(
                self._build(
                    "daily-summary",
                    type="info",
                    title="Daily Spending Summary",
                    message=f"You spent {format_currency(total_spent)} today across {len(todays)} transaction(s).",
                    priority="low",
                    category="spending",
                    actionable=True,
                    action_text="View Transactions",
                    action_url="/transactions",
                    expires_at=now + timedelta(hours=settings.daily_summary_ttl_hours),
                )
            )

        low_balance = [a for a in coerce_accounts(accounts) if a.balance < settings.notification_low_balance_threshold]
        if low_balance:
            notifications.append(
                self._build(
                    "low-balance",
                    type="warning",
                    title="Low Account Balance",
                    message=f"{len(low_balance)} account(s) have low balances. Consider transferring funds.",
                    priority="high",
                    category="account",
                    actionable=True,
                    action_text="View Accounts",
                    action_url="/accounts",
                )
            )

        near_limit = [
            b
            for b in coerce_budgets(budgets)
            if b.limit > 0 and settings.notification_budget_progress_ratio < b.spent / b.limit < 1
        ]
        if near_limit:
            percent = round(settings.notification_budget_progress_ratio * 100)
            notifications.append(
                self._build(
                    "budget-progress",
                    type="info",
                    title="Budget Progress Update",
                    message=f"{len(near_limit)} budget(s) are over {percent}% utilized.",
                    priority="medium",
                    category="budget",
                    actionable=True,
                    action_text="View Budgets",
                    action_url="/budgets",
                )
            )

        return self._publish(notifications)

    def notify_weekly_insights(
        self,
        current_week: Optional[Iterable[Any]],
        previous_week: Optional[Iterable[Any]],
    ) -> List[SmartNotification]:
        """Compare this week's expense total against last week's"""
        if current_week is None or previous_week is None:
            return []

        current = sum(t.amount for t in coerce_transactions(current_week) if t.type == "expense")
        previous = sum(t.amount for t in coerce_transactions(previous_week) if t.type == "expense")
        if previous <= 0:
            return []

        change_percent = (current - previous) / previous * 100
        if abs(change_percent) <= settings.notification_weekly_change_percent:
            return []

        is_increase = change_percent > 0
        return self._publish(
            [
                self._build(
                    "weekly-insight",
                    type="warning" if is_increase else "success",
                    title="Weekly Spending Insight",
                    message=(
                        f"Your spending this week is {abs(change_percent):.1f}% "
                        f"{'higher' if is_increase else 'lower'} than last week."
                    ),
                    priority="medium",
                    category="spending",
                    actionable=True,
                    action_text="View Reports",
                    action_url="/reports",
                )
            ]
        )

    def publish_insights(self, insights: Iterable[SpendingInsight]) -> List[SmartNotification]:
        """Wrap generated insights as notifications that expire after the insight TTL"""
        expires_at = self.store.clock() + timedelta(hours=settings.insight_notification_ttl_hours)
        notifications = []

        for insight in insights:
            if insight.confidence >= 0.9:
                priority = "high"
            elif insight.confidence >= 0.7:
                priority = "medium"
            else:
                priority = "low"

            notifications.append(
                self._build(
                    "insight",
                    type=_INSIGHT_TYPES.get(insight.type, "info"),
                    title=insight.title,
                    message=insight.message,
                    priority=priority,
                    category=insight.topic,
                    actionable=insight.actionable,
                    action_text=insight.action_text,
                    action_url=insight.action_url,
                    expires_at=expires_at,
                )
            )

        return self._publish(notifications)
