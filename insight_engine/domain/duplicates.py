"""Duplicate transaction detection - weighted name/amount/date/account similarity"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from rapidfuzz import fuzz

from insight_engine.config import settings
from insight_engine.domain.ingest import coerce_transaction, coerce_transactions
from insight_engine.domain.models import DuplicateDetectionResult, DuplicateGroup, Transaction
from insight_engine.utils.date_utils import days_apart
from insight_engine.utils.text_utils import contains_phrase, normalize_name

# Signal weights (sum to 1.0). Without a date signal a pair scores at most 0.7,
# the scan threshold.
NAME_WEIGHT = 0.35
AMOUNT_WEIGHT = 0.25
DATE_WEIGHT = 0.30
ACCOUNT_WEIGHT = 0.10

# Name similarity levels
CONTAINED_NAME_SCORE = 0.8
FUZZY_NAME_WEIGHT = 0.7


@dataclass
class PairSimilarity:
    """Per-signal breakdown for one candidate/existing comparison"""

    score: float
    name_score: float
    amount_matches: bool
    days_apart: Optional[int]
    same_account: Optional[bool] = None  # None when either side has no account


class DuplicateDetector:
    """
    Compares transactions pairwise and reports likely duplicates.

    Pairs of different type, or whose amounts differ beyond tolerance, never
    score above zero. Otherwise:

        score = 0.35 * name + 0.25 * amount + 0.30 * date + 0.10 * account

    name: 1.0 for equal normalized names, 0.8 when one contains the other on
    word boundaries, otherwise 0.7 * fuzzy ratio. date: 1.0 on the same
    calendar day, decaying linearly to 0 past the date window; 0 when either
    date is missing. account: 1.0 for the same account, 0 for different ones.
    When either side has no account the account weight is left out and the
    remaining signals are rescaled to sum to 1.0.
    """

    def __init__(
        self,
        threshold: float | None = None,
        scan_threshold: float | None = None,
        amount_tolerance_ratio: float | None = None,
        amount_tolerance_abs: float | None = None,
        date_window_days: int | None = None,
    ):
        self.threshold = threshold if threshold is not None else settings.duplicate_threshold
        self.scan_threshold = scan_threshold if scan_threshold is not None else settings.duplicate_scan_threshold
        self.amount_tolerance_ratio = (
            amount_tolerance_ratio if amount_tolerance_ratio is not None else settings.duplicate_amount_tolerance_ratio
        )
        self.amount_tolerance_abs = (
            amount_tolerance_abs if amount_tolerance_abs is not None else settings.duplicate_amount_tolerance_abs
        )
        self.date_window_days = date_window_days if date_window_days is not None else settings.duplicate_date_window_days

    def amounts_match(self, first: float, second: float) -> bool:
        diff = abs(first - second)
        if diff <= self.amount_tolerance_abs + 1e-9:
            return True
        return diff / max(first, second) <= self.amount_tolerance_ratio

    @staticmethod
    def name_similarity(first: str, second: str) -> float:
        a, b = normalize_name(first), normalize_name(second)
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0
        if contains_phrase(a, b) or contains_phrase(b, a):
            return CONTAINED_NAME_SCORE
        return FUZZY_NAME_WEIGHT * fuzz.ratio(a, b) / 100

    def date_similarity(self, gap_days: Optional[int]) -> float:
        if gap_days is None:
            return 0.0
        return max(0.0, 1 - gap_days / (self.date_window_days + 1))

    def compare(self, candidate: Transaction, existing: Transaction) -> PairSimilarity:
        """Score a single pair"""
        gap = None
        if candidate.date is not None and existing.date is not None:
            gap = days_apart(candidate.date, existing.date)

        same_account = None
        if candidate.account_id and existing.account_id:
            same_account = candidate.account_id == existing.account_id

        if candidate.type != existing.type or not self.amounts_match(candidate.amount, existing.amount):
            return PairSimilarity(
                score=0.0, name_score=0.0, amount_matches=False, days_apart=gap, same_account=same_account
            )

        name_score = self.name_similarity(candidate.name, existing.name)
        score = NAME_WEIGHT * name_score + AMOUNT_WEIGHT + DATE_WEIGHT * self.date_similarity(gap)
        if same_account is None:
            score /= 1 - ACCOUNT_WEIGHT
        elif same_account:
            score += ACCOUNT_WEIGHT

        return PairSimilarity(
            score=round(score, 4),
            name_score=name_score,
            amount_matches=True,
            days_apart=gap,
            same_account=same_account,
        )

    @staticmethod
    def describe(similarity: PairSimilarity) -> str:
        """Human-readable list of the signals that matched"""
        signals = []
        if similarity.name_score >= 1.0:
            signals.append("same merchant name")
        elif similarity.name_score > 0:
            signals.append("similar merchant name")
        if similarity.amount_matches:
            signals.append("same amount")
        if similarity.same_account:
            signals.append("same account")
        if similarity.days_apart == 0:
            signals.append("same day")
        elif similarity.days_apart is not None:
            signals.append(f"{similarity.days_apart} day(s) apart")
        return ", ".join(signals)

    def detect(self, candidate: Any, existing: Optional[Iterable[Any]]) -> DuplicateDetectionResult:
        """Check one candidate against existing transactions"""
        history = coerce_transactions(existing)
        if not history:
            return DuplicateDetectionResult(is_duplicate=False, confidence=0.0, reason="no prior transactions")

        txn = coerce_transaction(candidate)
        if txn is None:
            return DuplicateDetectionResult(is_duplicate=False, confidence=0.0, reason="invalid candidate transaction")

        best: Optional[PairSimilarity] = None
        best_match: Optional[Transaction] = None
        for other in history:
            similarity = self.compare(txn, other)
            if similarity.score > 0 and (best is None or similarity.score > best.score):
                best, best_match = similarity, other

        if best is None:
            return DuplicateDetectionResult(is_duplicate=False, confidence=0.0, reason="no similar transaction found")

        return DuplicateDetectionResult(
            is_duplicate=best.score >= self.threshold,
            confidence=best.score,
            reason=self.describe(best),
            similar_transaction=best_match,
        )

    def find_potential_duplicates(self, transactions: Optional[Iterable[Any]]) -> List[DuplicateGroup]:
        """
        Scan a batch for duplicate pairs.

        Each transaction is compared only with those after it in input order,
        so a pair is reported once, under its earlier member.
        """
        txns = coerce_transactions(transactions)
        groups = []

        for i, current in enumerate(txns):
            matches = []
            best_score = 0.0
            for other in txns[i + 1:]:
                score = self.compare(current, other).score
                if score > self.scan_threshold:
                    matches.append(other)
                    best_score = max(best_score, score)

            if matches:
                groups.append(DuplicateGroup(transaction=current, duplicates=matches, confidence=best_score))

        return groups
