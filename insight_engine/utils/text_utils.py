"""Text normalization helpers for merchant and transaction names"""

import re

_PUNCTUATION = re.compile(r"[^\w\s&]+", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")
_APOSTROPHES = re.compile(r"['’]")


def normalize_name(text: object) -> str:
    """Case-fold, strip punctuation and collapse whitespace"""
    if not isinstance(text, str):
        return ""
    cleaned = _PUNCTUATION.sub(" ", _APOSTROPHES.sub("", text.casefold())).replace("_", " ")
    return _WHITESPACE.sub(" ", cleaned).strip()


def contains_phrase(text: str, phrase: str) -> bool:
    """True when phrase occurs in text on token boundaries (both normalized)"""
    if not phrase:
        return False
    return f" {phrase} " in f" {text} "


def format_currency(amount: float) -> str:
    """Render an amount in USD, e.g. $1,234.56"""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
