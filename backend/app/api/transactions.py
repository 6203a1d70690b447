"""
Transaction API endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_db, get_filter_criteria
from app.schemas.filters import FilterCriteria
from app.schemas.table import SortDirection, SortState, TablePage, TableState
from app.schemas.transaction import TransactionListResponse, TransactionRecord
from app.services.reconciliation_service import reconcile
from app.services.table_view import TableView, page_count, transaction_columns
from app.services.transaction_store import query_all, query_page

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    owner: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.default_page_size, ge=1, le=100),
    criteria: FilterCriteria = Depends(get_filter_criteria),
    db: Session = Depends(get_db)
):
    """Paginated window of an owner's transactions, most recent first"""
    records, total = query_page(db, owner, criteria, page=page, per_page=per_page)

    return TransactionListResponse(
        items=reconcile(records),
        total=total,
        page=page,
        pages=page_count(total, per_page)
    )


@router.get("/table", response_model=TablePage[TransactionRecord])
def transaction_table(
    owner: str,
    sort_by: Optional[str] = "timestamp",
    sort_dir: SortDirection = SortDirection.desc,
    q: str = Query("", description="Search across every column"),
    column_filter: List[str] = Query([], description="column:value pairs"),
    page_index: int = Query(0, ge=0),
    page_size: int = Query(settings.default_page_size, ge=1, le=100),
    criteria: FilterCriteria = Depends(get_filter_criteria),
    db: Session = Depends(get_db)
):
    """
    Table over the full pull, sorted, filtered and paged locally.
    An empty sort_by turns sorting off.
    """
    records = reconcile(query_all(db, owner, criteria, limit=settings.full_fetch_limit))

    filters = {}
    for item in column_filter:
        column, sep, value = item.partition(":")
        if not sep:
            raise HTTPException(status_code=400, detail=f"Column filter must be column:value, got {item!r}")
        filters[column] = value

    known = {column.key for column in transaction_columns()}
    unknown = sorted((set(filters) | ({sort_by} if sort_by else set())) - known)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown column(s): {', '.join(unknown)}")

    view = TableView(
        records,
        state=TableState(
            sort=SortState(column=sort_by, direction=sort_dir) if sort_by else None,
            page_size=page_size,
        ),
    )
    for column, value in filters.items():
        view.set_column_filter(column, value)
    view.set_global_search(q)
    view.go_to_page(page_index)

    return view.page()
