"""
FastAPI dependencies.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, Query
from pydantic import ValidationError

from app.database import get_db
from app.models.transaction import TransactionKind
from app.models.wallet import Instrument
from app.schemas.filters import FilterCriteria
from app.services.periods import QUICK_PRESETS, quick_range

__all__ = ["get_db", "get_filter_criteria"]


def get_filter_criteria(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    preset: Optional[str] = Query(None, description="today, 7days, week, month or year; overrides the dates"),
    search: Optional[str] = None,
    category: Optional[str] = None,
    wallet_ids: List[int] = Query([]),
    min_amount: Optional[Decimal] = None,
    max_amount: Optional[Decimal] = None,
    kind: Optional[TransactionKind] = None,
    instrument: Optional[Instrument] = None,
) -> FilterCriteria:
    """
    Build the filter shared by the transaction, dashboard and report routes.
    """
    if preset:
        if preset not in QUICK_PRESETS:
            raise HTTPException(status_code=400, detail=f"Unknown preset: {preset}")
        start_date, end_date = quick_range(preset)

    try:
        return FilterCriteria(
            date_from=start_date,
            date_to=end_date,
            description=search or None,
            category=category or None,
            wallet_ids=frozenset(wallet_ids),
            min_amount=min_amount,
            max_amount=max_amount,
            kind=kind,
            instrument=instrument,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
