"""POST /v1/duplicates/* - duplicate transaction detection"""

import time

from fastapi import APIRouter, Depends, Request

from insight_engine.api.dependencies import get_duplicate_detector, get_request_id
from insight_engine.api.v1.schemas import (
    DetectDuplicateRequest,
    DetectDuplicateResponse,
    DuplicateGroupSchema,
    DuplicateScanResponse,
    TransactionBatchRequest,
)
from insight_engine.domain.duplicates import DuplicateDetector
from insight_engine.infrastructure.observability.logging import log_analysis
from insight_engine.infrastructure.observability.metrics import record_duplicate_check

router = APIRouter()


@router.post("/duplicates/detect", response_model=DetectDuplicateResponse)
def detect_duplicate(
    request_body: DetectDuplicateRequest,
    detector: DuplicateDetector = Depends(get_duplicate_detector),
):
    """Check whether a new transaction duplicates one of the existing ones"""
    result = detector.detect(
        request_body.candidate.to_record(),
        [t.to_record() for t in request_body.existing],
    )
    record_duplicate_check(result.is_duplicate)

    return DetectDuplicateResponse(
        is_duplicate=result.is_duplicate,
        confidence=result.confidence,
        reason=result.reason,
        similar_transaction_id=result.similar_transaction.id if result.similar_transaction else None,
    )


@router.post("/duplicates/scan", response_model=DuplicateScanResponse)
def scan_duplicates(
    request_body: TransactionBatchRequest,
    request: Request,
    detector: DuplicateDetector = Depends(get_duplicate_detector),
):
    """Report every likely duplicate pair in a batch, once per pair"""
    start_time = time.time()
    groups = detector.find_potential_duplicates([t.to_record() for t in request_body.transactions])

    duration_ms = (time.time() - start_time) * 1000
    log_analysis(get_request_id(request), "duplicate_scan", len(request_body.transactions), len(groups), duration_ms)

    return DuplicateScanResponse(
        groups=[
            DuplicateGroupSchema(
                transaction_id=g.transaction.id,
                duplicate_ids=[d.id for d in g.duplicates],
                confidence=g.confidence,
            )
            for g in groups
        ]
    )
