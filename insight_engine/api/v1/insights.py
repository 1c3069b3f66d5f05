"""POST /v1/insights - spending patterns and ranked insights"""

import time
from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from insight_engine.api.dependencies import get_notification_service, get_request_id
from insight_engine.api.v1.schemas import (
    InsightsRequest,
    InsightsResponse,
    PatternsResponse,
    SpendingInsightSchema,
    SpendingPatternSchema,
    TransactionBatchRequest,
)
from insight_engine.domain.insights import generate_insights
from insight_engine.domain.notifications import NotificationService
from insight_engine.domain.patterns import analyze_spending_patterns, detect_outliers
from insight_engine.infrastructure.observability.logging import log_analysis
from insight_engine.infrastructure.observability.metrics import record_insights, record_notifications

router = APIRouter()


@router.post("/insights/patterns", response_model=PatternsResponse)
def spending_patterns(request_body: TransactionBatchRequest):
    """Per-category statistics and the ids of statistical outliers"""
    records = [t.to_record() for t in request_body.transactions]

    return PatternsResponse(
        patterns=[SpendingPatternSchema(**asdict(p)) for p in analyze_spending_patterns(records)],
        outlier_ids=[t.id for t in detect_outliers(records)],
    )


@router.post("/insights", response_model=InsightsResponse)
def spending_insights(
    request_body: InsightsRequest,
    request: Request,
    service: NotificationService = Depends(get_notification_service),
):
    """
    Ranked spending insights for a transaction history.

    With publish=true the insights are also pushed to the notification feed.
    """
    start_time = time.time()
    records = [t.to_record() for t in request_body.transactions]
    budgets = [b.model_dump() for b in request_body.budgets] if request_body.budgets is not None else None

    insights = generate_insights(records, budgets)
    record_insights(insights)

    published_ids = []
    if request_body.publish and insights:
        published = service.publish_insights(insights)
        record_notifications(published)
        published_ids = [n.id for n in published]

    duration_ms = (time.time() - start_time) * 1000
    log_analysis(get_request_id(request), "insights", len(records), len(insights), duration_ms)

    return InsightsResponse(
        insights=[
            SpendingInsightSchema(
                type=i.type,
                title=i.title,
                message=i.message,
                confidence=i.confidence,
                actionable=i.actionable,
                action_text=i.action_text,
                action_url=i.action_url,
            )
            for i in insights
        ],
        published_ids=published_ids,
    )
