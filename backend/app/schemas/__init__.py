"""
Pydantic schemas package.
"""

from app.schemas.transaction import (
    DEFAULT_CATEGORY,
    WalletRef,
    TransactionRecord,
    TransactionListResponse,
)
from app.schemas.filters import FilterCriteria
from app.schemas.dashboard import (
    CategoryTotal,
    DailyFlow,
    InstrumentBreakdown,
    WalletBalance,
    AggregateResult,
)
from app.schemas.table import (
    SortDirection,
    SortState,
    TableState,
    AutomaticPagination,
    ManualPagination,
    PaginationConfig,
    TablePage,
)
from app.schemas.report import (
    CategorySettlement,
    ExpenseSettlement,
    IncomeSettlement,
    ReportSummary,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "WalletRef",
    "TransactionRecord",
    "TransactionListResponse",
    "FilterCriteria",
    "CategoryTotal",
    "DailyFlow",
    "InstrumentBreakdown",
    "WalletBalance",
    "AggregateResult",
    "SortDirection",
    "SortState",
    "TableState",
    "AutomaticPagination",
    "ManualPagination",
    "PaginationConfig",
    "TablePage",
    "CategorySettlement",
    "ExpenseSettlement",
    "IncomeSettlement",
    "ReportSummary",
]
