"""
Reconciliation service for transaction feeds.

The dashboard pulls the same store twice (a paginated window for the table and
a large pull for the charts) and the two overlap. Reconciliation turns either
pull into a duplicate-free list; chart eligibility is a separate filter so the
table can still show records whose timestamp is broken.
"""

import logging
from datetime import datetime
from typing import Hashable, Iterable, List, Optional, Tuple

from app.schemas.transaction import TransactionRecord

logger = logging.getLogger(__name__)


def resolution_key(record: TransactionRecord) -> Tuple[Hashable, ...]:
    """
    Identity of a record for deduplication.
    Persisted records are identified by id, the rest by
    owner|timestamp|description|amount. The tag keeps both key spaces apart.
    """
    if record.id is not None:
        return ("id", record.id)
    return ("composite", record.owner, record.timestamp, record.description, record.amount)


def reconcile(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    """Drop duplicates, keeping the first occurrence and the input order."""
    seen = set()
    unique = []
    total = 0
    for record in records:
        total += 1
        key = resolution_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)

    if total != len(unique):
        logger.debug("Reconciled %d records into %d", total, len(unique))
    return unique


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or date-time.
    Returns None for anything that does not parse. Offsets are dropped and the
    recorded wall-clock time is kept, so a record lands on the day it was
    written down.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def is_chart_eligible(record: TransactionRecord) -> bool:
    """Charts bucket by day, so they only take records with a usable timestamp."""
    return parse_timestamp(record.timestamp) is not None


def chart_eligible(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    return [r for r in records if is_chart_eligible(r)]
