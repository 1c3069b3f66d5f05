"""/v1/notifications - notification feed and event-driven generation"""

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Query, Response

from insight_engine.api.dependencies import get_notification_service, get_notification_store
from insight_engine.api.v1.schemas import (
    DailySummaryRequest,
    NotificationCountResponse,
    NotificationListResponse,
    NotificationSchema,
    TransactionNotificationRequest,
    WeeklyInsightsRequest,
)
from insight_engine.domain.models import SmartNotification
from insight_engine.domain.notifications import NotificationService, NotificationStore
from insight_engine.infrastructure.observability.metrics import notifications_removed_counter, record_notifications

router = APIRouter()


def _feed(notifications: List[SmartNotification], store: NotificationStore) -> NotificationListResponse:
    return NotificationListResponse(
        notifications=[NotificationSchema(**asdict(n)) for n in notifications],
        unread_count=store.get_notification_count(),
    )


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    store: NotificationStore = Depends(get_notification_store),
):
    """Live notifications, most recent first"""
    notifications = store.get_unread_notifications() if unread_only else store.get_notifications()
    return _feed(notifications, store)


@router.get("/notifications/count", response_model=NotificationCountResponse)
def notification_count(store: NotificationStore = Depends(get_notification_store)):
    """Unread badge count"""
    return NotificationCountResponse(unread_count=store.get_notification_count())


@router.post("/notifications/read-all", status_code=204)
def mark_all_read(store: NotificationStore = Depends(get_notification_store)):
    store.mark_all_as_read()
    return Response(status_code=204)


@router.post("/notifications/{notification_id}/read", status_code=204)
def mark_read(notification_id: str, store: NotificationStore = Depends(get_notification_store)):
    """Mark one notification as read; unknown ids are ignored"""
    store.mark_as_read(notification_id)
    return Response(status_code=204)


@router.delete("/notifications/{notification_id}", status_code=204)
def remove_notification(notification_id: str, store: NotificationStore = Depends(get_notification_store)):
    """Dismiss a notification; unknown ids are ignored"""
    if store.remove_notification(notification_id):
        notifications_removed_counter.labels(reason="dismissed").inc()
    return Response(status_code=204)


@router.post("/notifications/transaction", response_model=NotificationListResponse)
def transaction_notifications(
    request_body: TransactionNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Notifications triggered by one new transaction"""
    created = service.notify_transaction(
        request_body.transaction.to_record(),
        [t.to_record() for t in request_body.existing],
        [b.model_dump() for b in request_body.budgets] if request_body.budgets is not None else None,
    )
    record_notifications(created)
    return _feed(created, service.store)


@router.post("/notifications/daily-summary", response_model=NotificationListResponse)
def daily_summary_notifications(
    request_body: DailySummaryRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Summary notifications for one day of activity"""
    created = service.notify_daily_summary(
        [t.to_record() for t in request_body.transactions],
        [a.model_dump() for a in request_body.accounts],
        [b.model_dump() for b in request_body.budgets] if request_body.budgets is not None else None,
        day=request_body.day,
    )
    record_notifications(created)
    return _feed(created, service.store)


@router.post("/notifications/weekly", response_model=NotificationListResponse)
def weekly_notifications(
    request_body: WeeklyInsightsRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Week-over-week spending comparison"""
    created = service.notify_weekly_insights(
        [t.to_record() for t in request_body.current_week],
        [t.to_record() for t in request_body.previous_week],
    )
    record_notifications(created)
    return _feed(created, service.store)
