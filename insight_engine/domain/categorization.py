"""Keyword-based transaction categorization with learned user corrections"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

from insight_engine.domain.ingest import read_field, clean_str
from insight_engine.domain.models import CategorySuggestion
from insight_engine.utils.text_utils import contains_phrase, normalize_name

logger = logging.getLogger(__name__)

MERCHANT_CONFIDENCE = 0.95
KEYWORD_CONFIDENCE_CAP = 0.9
LEARNED_CONFIDENCE = 1.0
LEARNED_NEAR_MATCH_CONFIDENCE = 0.8
LEARNED_NEAR_MATCH_DISTANCE = 2
LEARNED_NEAR_MATCH_MIN_SIMILARITY = 0.8
LEARNED_NEAR_MATCH_MIN_LENGTH = 5
PARTIAL_MATCH_MIN_RATIO = 80
PARTIAL_MATCH_WEIGHT = 0.3
PARTIAL_MATCH_MIN_TOKEN = 4

# Known merchants map straight to a category
MERCHANTS: Dict[str, str] = {
    "amazon": "Shopping",
    "walmart": "Shopping",
    "target": "Shopping",
    "starbucks": "Food & Dining",
    "mcdonalds": "Food & Dining",
    "uber": "Transportation",
    "lyft": "Transportation",
    "netflix": "Entertainment",
    "spotify": "Entertainment",
}

# category -> (transaction type, keywords)
CATEGORY_KEYWORDS: Dict[str, Tuple[str, List[str]]] = {
    "Food & Dining": ("expense", [
        "restaurant", "cafe", "coffee", "food", "dining", "eat", "meal", "lunch", "dinner", "breakfast",
        "pizza", "burger", "sandwich", "pasta", "chinese", "indian", "mexican", "italian", "fast food",
        "delivery", "takeout", "grubhub", "ubereats", "doordash", "starbucks", "mcdonalds", "kfc",
        "dominos", "papa johns", "chipotle", "taco bell", "wendys", "burger king",
    ]),
    "Transportation": ("expense", [
        "gas station", "fuel", "petrol", "diesel", "shell", "bp", "exxon", "chevron", "mobil",
        "uber", "lyft", "taxi", "cab", "metro", "bus", "train", "subway", "parking",
        "toll", "highway", "ferry", "airline", "flight", "airport", "car rental",
        "auto", "vehicle", "oil change", "tire", "brake",
    ]),
    "Shopping": ("expense", [
        "amazon", "walmart", "target", "costco", "sams club", "best buy", "home depot",
        "lowes", "macys", "nordstrom", "gap", "old navy", "h&m", "zara", "uniqlo",
        "ebay", "etsy", "shopify", "online", "store", "mall", "retail", "purchase",
        "clothing", "shoes", "electronics", "furniture", "garden", "tools",
    ]),
    "Entertainment": ("expense", [
        "netflix", "spotify", "apple music", "youtube", "hulu", "disney", "hbo", "prime video",
        "movie", "cinema", "theater", "concert", "show", "ticket", "event", "game",
        "playstation", "xbox", "nintendo", "steam", "gaming", "arcade", "bowling",
        "golf", "tennis", "gym", "fitness", "sport", "recreation", "leisure",
    ]),
    "Healthcare": ("expense", [
        "hospital", "clinic", "doctor", "medical", "pharmacy", "cvs", "walgreens",
        "prescription", "medicine", "drug", "health", "dental", "dentist", "optometrist",
        "vision", "glasses", "therapy", "treatment", "copay",
    ]),
    "Utilities": ("expense", [
        "electric", "electricity", "gas bill", "water", "sewer", "trash", "waste", "internet", "phone",
        "cable", "utility", "heating", "cooling", "hvac", "plumbing", "electrician",
    ]),
    "Income": ("income", [
        "salary", "wage", "payroll", "paycheck", "bonus", "commission", "freelance", "contract",
        "refund", "rebate", "cashback", "dividend", "interest", "investment",
        "rental income", "royalty", "gift", "inheritance", "lottery", "prize",
    ]),
}


@dataclass
class _KeywordHit:
    category: str
    keyword: str
    confidence: float
    from_merchant: bool


class CategoryClassifier:
    """
    Maps a candidate transaction to category guesses.

    Built-in merchant and keyword tables are matched against the normalized
    transaction name on token boundaries; the longest matching keyword wins.
    Corrections recorded through learn() take precedence over the tables for
    that exact normalized name.
    """

    def __init__(
        self,
        merchants: Optional[Mapping[str, str]] = None,
        category_keywords: Optional[Mapping[str, Tuple[str, List[str]]]] = None,
        learned: Optional[Mapping[str, str]] = None,
    ):
        self._merchants = {normalize_name(k): v for k, v in (merchants or MERCHANTS).items()}
        self._keywords: List[Tuple[str, str, str]] = []  # (keyword, category, type)
        for category, (txn_type, keywords) in (category_keywords or CATEGORY_KEYWORDS).items():
            for keyword in keywords:
                normalized = normalize_name(keyword)
                if normalized:
                    self._keywords.append((normalized, category, txn_type))
        self._category_types = {
            category: txn_type for category, (txn_type, _) in (category_keywords or CATEGORY_KEYWORDS).items()
        }
        self._learned: Dict[str, str] = {}
        if learned:
            self.load_learned(learned)

    # Learned associations

    @property
    def learned_associations(self) -> Dict[str, str]:
        """Copy of the normalized-name -> category corrections"""
        return dict(self._learned)

    def load_learned(self, mapping: Mapping[str, str]) -> None:
        """Merge previously exported corrections"""
        for name, category in mapping.items():
            self.learn(name, category)

    def learn(self, transaction_name: str, category: str) -> None:
        """Record a user correction; repeated identical calls leave state unchanged"""
        key = normalize_name(transaction_name)
        label = clean_str(category)
        if not key or label is None:
            return
        if self._learned.get(key) != label:
            self._learned[key] = label
            logger.debug(f"Learned category mapping: {key} -> {label}")

    # Matching

    def _type_allows(self, category: str, txn_type: Optional[str]) -> bool:
        if txn_type is None:
            return True
        # Merchant categories without keyword entries are expense categories
        return self._category_types.get(category, "expense") == txn_type

    def _keyword_hits(self, name: str, txn_type: Optional[str]) -> List[_KeywordHit]:
        hits = []
        for merchant, category in self._merchants.items():
            if contains_phrase(name, merchant) and self._type_allows(category, txn_type):
                hits.append(_KeywordHit(category, merchant, MERCHANT_CONFIDENCE, True))
        for keyword, category, keyword_type in self._keywords:
            if txn_type is not None and keyword_type != txn_type:
                continue
            if contains_phrase(name, keyword):
                confidence = min(KEYWORD_CONFIDENCE_CAP, 0.5 + 0.4 * len(keyword) / len(name))
                hits.append(_KeywordHit(category, keyword, confidence, False))
        return hits

    @staticmethod
    def _near_spelling(name: str, learned_name: str) -> bool:
        # Names below the minimum length only match exactly
        if min(len(name), len(learned_name)) < LEARNED_NEAR_MATCH_MIN_LENGTH:
            return False
        return (
            Levenshtein.distance(name, learned_name) <= LEARNED_NEAR_MATCH_DISTANCE
            and Levenshtein.normalized_similarity(name, learned_name) >= LEARNED_NEAR_MATCH_MIN_SIMILARITY
        )

    @staticmethod
    def _best_hit(hits: List[_KeywordHit]) -> Optional[_KeywordHit]:
        if not hits:
            return None
        # Longest keyword, then merchant table, then category name order
        return min(hits, key=lambda h: (-len(h.keyword), not h.from_merchant, h.category))

    def _match(self, candidate: Any) -> Tuple[Optional[str], float, str]:
        """Return (category, confidence, source) for the candidate"""
        name = normalize_name(read_field(candidate, "name", "description"))
        if not name:
            return None, 0.0, "none"

        if name in self._learned:
            return self._learned[name], LEARNED_CONFIDENCE, "learned"

        txn_type = clean_str(read_field(candidate, "type"))
        txn_type = txn_type.lower() if txn_type else None
        best = self._best_hit(self._keyword_hits(name, txn_type))
        if best is None:
            return None, 0.0, "none"
        return best.category, best.confidence, "keyword"

    def categorize(self, candidate: Any) -> Optional[str]:
        """Best category label for the candidate, or None when nothing matches"""
        category, _, _ = self._match(candidate)
        return category

    def confidence(self, candidate: Any) -> float:
        """Confidence of the categorize() answer; 0 when there is no match"""
        _, score, _ = self._match(candidate)
        return score

    def classify(self, candidate: Any) -> Tuple[Optional[str], float, str]:
        """categorize() and confidence() in one pass, plus the match source"""
        return self._match(candidate)

    def suggest(self, candidate: Any, limit: int = 3) -> List[CategorySuggestion]:
        """
        Ranked category candidates, descending confidence, ties by category name.

        Includes learned corrections (exact and near spellings), keyword matches
        and low-confidence partial keyword overlaps. Returns an empty list when
        the name shares no text with any known keyword or correction.
        """
        name = normalize_name(read_field(candidate, "name", "description"))
        if not name:
            return []

        txn_type = clean_str(read_field(candidate, "type"))
        txn_type = txn_type.lower() if txn_type else None
        scores: Dict[str, float] = {}

        def offer(category: str, score: float) -> None:
            if score > scores.get(category, 0.0):
                scores[category] = score

        if name in self._learned:
            offer(self._learned[name], LEARNED_CONFIDENCE)
        for learned_name, category in self._learned.items():
            if learned_name != name and self._near_spelling(name, learned_name):
                offer(category, LEARNED_NEAR_MATCH_CONFIDENCE)

        for hit in self._keyword_hits(name, txn_type):
            offer(hit.category, hit.confidence)

        tokens = [t for t in name.split() if len(t) >= PARTIAL_MATCH_MIN_TOKEN]
        if tokens:
            for keyword, category, keyword_type in self._keywords:
                if txn_type is not None and keyword_type != txn_type:
                    continue
                if len(keyword) < PARTIAL_MATCH_MIN_TOKEN:
                    continue
                ratio = max(fuzz.partial_ratio(token, keyword) for token in tokens)
                if ratio >= PARTIAL_MATCH_MIN_RATIO:
                    offer(category, round(PARTIAL_MATCH_WEIGHT * ratio / 100, 3))

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
        return [CategorySuggestion(category=c, confidence=s) for c, s in ranked[:limit]]
