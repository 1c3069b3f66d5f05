"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionSchema(CamelModel):
    """Transaction as supplied by the UI layer"""

    id: str = ""
    name: str
    amount: float
    type: str = Field(..., description="income or expense")
    date: Any = Field(None, description="ISO date, epoch or Firestore timestamp")
    category: Optional[str] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    created_at: Any = None
    updated_at: Any = None

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class BudgetSchema(CamelModel):
    category: str
    limit: float
    spent: float


class AccountSchema(CamelModel):
    name: str
    balance: float


class CandidateSchema(CamelModel):
    """Transaction being categorized"""

    name: str = Field(..., min_length=1)
    amount: Optional[float] = None
    type: Optional[str] = None


# Categories

class CategorySuggestionSchema(BaseModel):
    category: str
    confidence: float


class CategorizeResponse(BaseModel):
    category: Optional[str]
    confidence: float
    suggestions: List[CategorySuggestionSchema]


class SuggestRequest(CandidateSchema):
    existing_categories: List[str] = Field(default_factory=list)


class SuggestResponse(BaseModel):
    source: str  # "oracle" | "local"
    suggestions: List[CategorySuggestionSchema]


class LearnRequest(CamelModel):
    transaction_name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)


# Duplicates

class DetectDuplicateRequest(CamelModel):
    candidate: TransactionSchema
    existing: List[TransactionSchema] = Field(default_factory=list)


class DetectDuplicateResponse(BaseModel):
    is_duplicate: bool
    confidence: float
    reason: str
    similar_transaction_id: Optional[str] = None


class TransactionBatchRequest(CamelModel):
    transactions: List[TransactionSchema] = Field(default_factory=list)


class DuplicateGroupSchema(BaseModel):
    transaction_id: str
    duplicate_ids: List[str]
    confidence: float


class DuplicateScanResponse(BaseModel):
    groups: List[DuplicateGroupSchema]


# Insights

class SpendingPatternSchema(BaseModel):
    category: str
    average_amount: float
    frequency: float
    trend: str
    total_spent: float
    last_transaction_date: Optional[datetime]
    transaction_count: int


class PatternsResponse(BaseModel):
    patterns: List[SpendingPatternSchema]
    outlier_ids: List[str]


class InsightsRequest(TransactionBatchRequest):
    budgets: Optional[List[BudgetSchema]] = None
    publish: bool = False


class SpendingInsightSchema(BaseModel):
    type: str
    title: str
    message: str
    confidence: float
    actionable: bool
    action_text: Optional[str] = None
    action_url: Optional[str] = None


class InsightsResponse(BaseModel):
    insights: List[SpendingInsightSchema]
    published_ids: List[str] = Field(default_factory=list)


# Notifications

class NotificationSchema(BaseModel):
    id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool
    priority: str
    category: str
    actionable: bool
    action_text: Optional[str] = None
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationSchema]
    unread_count: int


class NotificationCountResponse(BaseModel):
    unread_count: int


class TransactionNotificationRequest(CamelModel):
    transaction: TransactionSchema
    existing: List[TransactionSchema] = Field(default_factory=list)
    budgets: Optional[List[BudgetSchema]] = None


class DailySummaryRequest(CamelModel):
    transactions: List[TransactionSchema] = Field(default_factory=list)
    accounts: List[AccountSchema] = Field(default_factory=list)
    budgets: Optional[List[BudgetSchema]] = None
    day: Optional[datetime] = None


class WeeklyInsightsRequest(CamelModel):
    current_week: List[TransactionSchema] = Field(default_factory=list)
    previous_week: List[TransactionSchema] = Field(default_factory=list)
