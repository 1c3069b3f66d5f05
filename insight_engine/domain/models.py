"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class Transaction:
    """Financial transaction supplied by the host application (read-only input)"""

    id: str
    name: str
    amount: float  # Always a positive magnitude
    type: str  # "income" or "expense"
    date: Optional[datetime]
    category: Optional[str] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Budget:
    """Budget entry from the budgets provider"""

    category: str
    limit: float
    spent: float


@dataclass
class AccountBalance:
    """Account snapshot from the accounts provider"""

    name: str
    balance: float


@dataclass
class CategorySuggestion:
    """Candidate category with heuristic confidence"""

    category: str
    confidence: float


@dataclass
class DuplicateDetectionResult:
    """Outcome of comparing one candidate against existing transactions"""

    is_duplicate: bool
    confidence: float
    reason: str
    similar_transaction: Optional[Transaction] = None


@dataclass
class DuplicateGroup:
    """A transaction and the later transactions that look like copies of it"""

    transaction: Transaction
    duplicates: List[Transaction]
    confidence: float


@dataclass
class SpendingPattern:
    """Per-category statistics, recomputed on every analysis call"""

    category: str
    average_amount: float
    frequency: float  # Transactions per week
    trend: str  # "increasing" | "decreasing" | "stable"
    total_spent: float
    last_transaction_date: Optional[datetime]
    transaction_count: int = 0


@dataclass
class SpendingInsight:
    """Advisory observation about spending behaviour"""

    type: str  # "warning" | "info" | "success" | "tip"
    title: str
    message: str
    confidence: float
    actionable: bool
    action_text: Optional[str] = None
    action_url: Optional[str] = None
    topic: str = "spending"  # "spending" | "budget"


@dataclass(frozen=True)
class SmartNotification:
    """Stateful notification held by the notification store"""

    id: str
    type: str  # "success" | "warning" | "error" | "info"
    title: str
    message: str
    timestamp: datetime
    priority: str  # "low" | "medium" | "high"
    category: str  # "spending" | "budget" | "saving" | "transaction" | "account"
    actionable: bool
    read: bool = False
    action_text: Optional[str] = None
    action_url: Optional[str] = None
    expires_at: Optional[datetime] = None
