"""
Report schemas.
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel

from app.schemas.dashboard import AggregateResult
from app.schemas.filters import FilterCriteria
from app.schemas.transaction import TransactionRecord


class CategorySettlement(BaseModel):
    category: str
    settled: Decimal  # debit: already paid
    pending: Decimal  # credit: still on the card bill
    total: Decimal


class ExpenseSettlement(BaseModel):
    total: Decimal
    settled: Decimal
    pending: Decimal
    by_category: List[CategorySettlement]


class IncomeSettlement(BaseModel):
    total: Decimal
    received: Decimal
    receivable: Decimal


class ReportSummary(BaseModel):
    criteria: FilterCriteria
    summary: AggregateResult
    expenses: ExpenseSettlement
    income: IncomeSettlement
    transactions: List[TransactionRecord]
