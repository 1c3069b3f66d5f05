"""Boundary parsing: turn host-supplied records into domain objects"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from insight_engine.domain.exceptions import InvalidTransactionDataError
from insight_engine.domain.models import AccountBalance, Budget, Transaction
from insight_engine.utils.date_utils import to_datetime

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("income", "expense")


def read_field(raw: Any, *names: str) -> Any:
    """Read the first present key/attribute among camelCase and snake_case spellings"""
    for name in names:
        if isinstance(raw, Mapping):
            if name in raw:
                return raw[name]
        elif hasattr(raw, name):
            return getattr(raw, name)
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_transaction(raw: Any) -> Transaction:
    """
    Strictly parse a single transaction record.

    Raises:
        InvalidTransactionDataError: On missing name, non-positive or
            non-numeric amount, or an unknown transaction type
    """
    if raw is None:
        raise InvalidTransactionDataError("Transaction record is empty")

    name = clean_str(read_field(raw, "name", "description"))
    if name is None:
        raise InvalidTransactionDataError("Transaction has no name")

    amount = _number(read_field(raw, "amount"))
    if amount is None or amount <= 0:
        raise InvalidTransactionDataError(f"Invalid amount for transaction '{name}'")

    txn_type = clean_str(read_field(raw, "type"))
    txn_type = txn_type.lower() if txn_type else None
    if txn_type not in TRANSACTION_TYPES:
        raise InvalidTransactionDataError(f"Unknown transaction type: {txn_type}")

    txn_id = clean_str(read_field(raw, "id", "transaction_id"))

    return Transaction(
        id=txn_id or "",
        name=name,
        amount=amount,
        type=txn_type,
        date=to_datetime(read_field(raw, "date")),
        category=clean_str(read_field(raw, "category")),
        category_id=clean_str(read_field(raw, "category_id", "categoryId")),
        account_id=clean_str(read_field(raw, "account_id", "accountId")),
        created_at=to_datetime(read_field(raw, "created_at", "createdAt")),
        updated_at=to_datetime(read_field(raw, "updated_at", "updatedAt")),
    )


def coerce_transaction(raw: Any) -> Optional[Transaction]:
    """Lenient variant of parse_transaction: malformed records yield None"""
    try:
        return parse_transaction(raw)
    except InvalidTransactionDataError as e:
        logger.debug(f"Dropping malformed transaction: {e}")
        return None


def _records(items: Any) -> List[Any]:
    """Materialize a batch input; anything that is not a sequence of records is empty"""
    if items is None or isinstance(items, (str, bytes, Mapping)):
        return []
    try:
        return list(items)
    except TypeError:
        return []


def coerce_transactions(items: Optional[Iterable[Any]]) -> List[Transaction]:
    """Parse a batch of records, silently dropping anything malformed"""
    transactions = []
    for raw in _records(items):
        txn = coerce_transaction(raw)
        if txn is not None:
            transactions.append(txn)
    return transactions


def coerce_budgets(items: Optional[Iterable[Any]]) -> List[Budget]:
    """Parse budgets provider entries; entries without a category or numbers are dropped"""
    budgets = []
    for raw in _records(items):
        if isinstance(raw, Budget):
            budgets.append(raw)
            continue
        category = clean_str(read_field(raw, "category"))
        limit = _number(read_field(raw, "limit"))
        spent = _number(read_field(raw, "spent"))
        if category is None or limit is None or spent is None:
            logger.debug(f"Dropping malformed budget entry: {raw!r}")
            continue
        budgets.append(Budget(category=category, limit=limit, spent=spent))
    return budgets


def coerce_accounts(items: Optional[Iterable[Any]]) -> List[AccountBalance]:
    """Parse accounts provider entries; entries without a numeric balance are dropped"""
    accounts = []
    for raw in _records(items):
        if isinstance(raw, AccountBalance):
            accounts.append(raw)
            continue
        balance = _number(read_field(raw, "balance"))
        if balance is None:
            logger.debug(f"Dropping malformed account entry: {raw!r}")
            continue
        accounts.append(AccountBalance(name=clean_str(read_field(raw, "name")) or "", balance=balance))
    return accounts
