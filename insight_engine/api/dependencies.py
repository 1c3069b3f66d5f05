"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from insight_engine.domain.categorization import CategoryClassifier
from insight_engine.domain.duplicates import DuplicateDetector
from insight_engine.domain.notifications import NotificationService, NotificationStore
from insight_engine.infrastructure.clients.oracle import CategorizationOracleClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_classifier(request: Request) -> CategoryClassifier:
    """Application-wide classifier holding learned corrections"""
    return request.app.state.classifier


def get_duplicate_detector(request: Request) -> DuplicateDetector:
    return request.app.state.detector


def get_notification_store(request: Request) -> NotificationStore:
    """Application-wide notification feed"""
    return request.app.state.notification_store


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_oracle_client() -> CategorizationOracleClient:
    """Provide hosted categorization client instance"""
    return CategorizationOracleClient()
