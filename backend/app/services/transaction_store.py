"""
Transaction store queries.

Two pulls feed the dashboard: a paginated window for the table and a large
"everything" pull for the charts. SQL narrows the pull on owner, dates, wallets
and kind. The text, amount and instrument criteria are then applied by
``FilterCriteria.matches`` so every route filters records the same way.
Both pulls return ``TransactionRecord`` values, not ORM rows.
"""

import logging
from datetime import timedelta
from typing import List, Tuple

from sqlalchemy.orm import Query, Session, joinedload

from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.schemas.filters import FilterCriteria
from app.schemas.transaction import TransactionRecord, WalletRef

logger = logging.getLogger(__name__)


def _filtered_query(db: Session, owner: str, criteria: FilterCriteria) -> Query:
    query = db.query(Transaction).filter(Transaction.owner == owner)

    # Timestamps are ISO text, so day bounds compare as strings
    if criteria.date_from:
        query = query.filter(Transaction.timestamp >= criteria.date_from.isoformat())
    if criteria.date_to:
        query = query.filter(Transaction.timestamp < (criteria.date_to + timedelta(days=1)).isoformat())
    # SQLite only folds ASCII case, so other needles are left to matches()
    if criteria.description and criteria.description.isascii():
        query = query.filter(Transaction.description.icontains(criteria.description, autoescape=True))
    if criteria.wallet_ids:
        query = query.filter(Transaction.wallet_id.in_(sorted(criteria.wallet_ids)))
    if criteria.kind is not None:
        query = query.filter(Transaction.kind == criteria.kind)

    return query


def _needs_record_pass(criteria: FilterCriteria) -> bool:
    """True when some criterion is only applied to validated records."""
    return bool(
        criteria.description
        or criteria.category
        or criteria.min_amount is not None
        or criteria.max_amount is not None
        or criteria.instrument is not None
    )


def _to_records(rows: List[Transaction], criteria: FilterCriteria) -> List[TransactionRecord]:
    records = [TransactionRecord.model_validate(row) for row in rows]
    if not _needs_record_pass(criteria):
        return records
    return [r for r in records if criteria.matches(r)]


def query_page(
    db: Session,
    owner: str,
    criteria: FilterCriteria,
    page: int = 1,
    per_page: int = 10
) -> Tuple[List[TransactionRecord], int]:
    """One page of records, most recent first, plus the total match count."""
    query = _filtered_query(db, owner, criteria).options(joinedload(Transaction.wallet))
    query = query.order_by(Transaction.timestamp.desc(), Transaction.id.desc())

    if _needs_record_pass(criteria):
        # The total depends on criteria SQL cannot answer, so page in Python
        records = _to_records(query.all(), criteria)
        start = (page - 1) * per_page
        return records[start:start + per_page], len(records)

    total = query.count()

    rows = (
        query.offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    logger.debug("Page %d for %s: %d of %d records", page, owner, len(rows), total)
    return [TransactionRecord.model_validate(row) for row in rows], total


def query_all(
    db: Session,
    owner: str,
    criteria: FilterCriteria,
    limit: int = 10000
) -> List[TransactionRecord]:
    """The large pull behind the charts; capped at ``limit`` rows."""
    rows = (
        _filtered_query(db, owner, criteria)
        .options(joinedload(Transaction.wallet))
        .order_by(Transaction.timestamp.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )
    if len(rows) == limit:
        logger.warning("Full pull for %s hit the %d row cap; charts may be incomplete", owner, limit)
    return _to_records(rows, criteria)


def list_wallets(db: Session, owner: str) -> List[WalletRef]:
    """All of an owner's wallets, default wallet first."""
    wallets = (
        db.query(Wallet)
        .filter(Wallet.owner == owner)
        .order_by(Wallet.is_default.desc(), Wallet.id)
        .all()
    )
    return [WalletRef.model_validate(wallet) for wallet in wallets]
