"""
Dashboard API endpoints.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_db, get_filter_criteria
from app.schemas.dashboard import AggregateResult
from app.schemas.filters import FilterCriteria
from app.services.aggregation_service import aggregate
from app.services.periods import shift_month
from app.services.reconciliation_service import chart_eligible, reconcile
from app.services.transaction_store import list_wallets, query_all

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=AggregateResult)
def get_dashboard_summary(
    owner: str,
    window_days: int = Query(settings.chart_window_days, ge=1, le=366),
    criteria: FilterCriteria = Depends(get_filter_criteria),
    db: Session = Depends(get_db)
):
    """
    Cards and chart data for the current filter.
    The pull ignores the start date so the balance carried into the window
    can be computed; the aggregator applies the window itself.
    """
    records = query_all(
        db,
        owner,
        criteria.with_range(None, criteria.date_to),
        limit=settings.full_fetch_limit
    )
    chart_input = chart_eligible(reconcile(records))
    logger.debug("Dashboard for %s over %d chart records", owner, len(chart_input))

    return aggregate(
        chart_input,
        criteria,
        window_days=window_days,
        top_n=settings.top_categories,
        wallets=list_wallets(db, owner),
    )


@router.get("/month")
def get_month_range(
    anchor: Optional[date] = None,
    step: int = Query(0, ge=-120, le=120)
):
    """Date range of the month ``step`` months away from ``anchor`` (default today)"""
    start, end = shift_month(anchor or date.today(), step)
    return {"start_date": start.isoformat(), "end_date": end.isoformat()}
