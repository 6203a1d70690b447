"""
Report API endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_db, get_filter_criteria
from app.schemas.filters import FilterCriteria
from app.schemas.report import ReportSummary
from app.services.report_service import build_report
from app.services.transaction_store import list_wallets, query_all

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/summary", response_model=ReportSummary)
def get_report_summary(
    owner: str,
    window_days: int = Query(settings.chart_window_days, ge=1, le=366),
    criteria: FilterCriteria = Depends(get_filter_criteria),
    db: Session = Depends(get_db)
):
    """Report data for the filter; figures match the dashboard for the same filter"""
    records = query_all(
        db,
        owner,
        criteria.with_range(None, criteria.date_to),
        limit=settings.full_fetch_limit
    )
    return build_report(
        records,
        criteria,
        window_days=window_days,
        top_n=settings.top_categories,
        wallets=list_wallets(db, owner),
    )
