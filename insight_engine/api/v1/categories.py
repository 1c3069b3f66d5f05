"""POST /v1/categories/* - category guesses, suggestions and user corrections"""

import logging

from fastapi import APIRouter, Depends, Request, Response

from insight_engine.api.dependencies import get_classifier, get_oracle_client, get_request_id
from insight_engine.api.v1.schemas import (
    CandidateSchema,
    CategorizeResponse,
    CategorySuggestionSchema,
    LearnRequest,
    SuggestRequest,
    SuggestResponse,
)
from insight_engine.domain.categorization import CategoryClassifier
from insight_engine.domain.exceptions import CategorizationOracleError
from insight_engine.infrastructure.clients.oracle import CategorizationOracleClient
from insight_engine.infrastructure.observability.metrics import categorizations_counter, oracle_failures_counter

router = APIRouter()


@router.post("/categories/categorize", response_model=CategorizeResponse)
def categorize(
    request_body: CandidateSchema,
    classifier: CategoryClassifier = Depends(get_classifier),
):
    """Best local category guess with its confidence and the ranked alternatives"""
    candidate = request_body.model_dump()
    category, confidence, source = classifier.classify(candidate)
    categorizations_counter.labels(source=source).inc()

    return CategorizeResponse(
        category=category,
        confidence=confidence,
        suggestions=[
            CategorySuggestionSchema(category=s.category, confidence=s.confidence)
            for s in classifier.suggest(candidate)
        ],
    )


@router.post("/categories/suggest", response_model=SuggestResponse)
async def suggest(
    request_body: SuggestRequest,
    request: Request,
    classifier: CategoryClassifier = Depends(get_classifier),
    oracle: CategorizationOracleClient = Depends(get_oracle_client),
):
    """
    Category suggestions, preferring the hosted service when configured.

    Any failure of the hosted service falls back to the local classifier.
    """
    request_id = get_request_id(request)

    if oracle.configured:
        try:
            suggestions = await oracle.suggest_categories(
                request_body.name,
                request_body.type or "expense",
                request_body.existing_categories,
            )
            categorizations_counter.labels(source="oracle").inc()
            return SuggestResponse(
                source="oracle",
                suggestions=[
                    CategorySuggestionSchema(category=s.category, confidence=s.confidence) for s in suggestions
                ],
            )
        except CategorizationOracleError as e:
            oracle_failures_counter.inc()
            logging.warning(f"Categorization service failed, using local fallback: {e}", extra={"request_id": request_id})

    candidate = request_body.model_dump()
    _, _, source = classifier.classify(candidate)
    categorizations_counter.labels(source=source).inc()
    return SuggestResponse(
        source="local",
        suggestions=[
            CategorySuggestionSchema(category=s.category, confidence=s.confidence)
            for s in classifier.suggest(candidate)
        ],
    )


@router.post("/categories/learn", status_code=204)
def learn(
    request_body: LearnRequest,
    classifier: CategoryClassifier = Depends(get_classifier),
):
    """Record a user's manual category choice for future guesses"""
    classifier.learn(request_body.transaction_name, request_body.category)
    return Response(status_code=204)
