"""
Dashboard schemas.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from app.models.wallet import Instrument


class CategoryTotal(BaseModel):
    category: str
    amount: Decimal
    percent: float


class DailyFlow(BaseModel):
    date: date
    income: Decimal
    expense: Decimal
    net: Decimal


class InstrumentBreakdown(BaseModel):
    instrument: Instrument
    total_income: Decimal
    total_expense: Decimal
    net: Decimal
    top_expense_categories: List[CategoryTotal]
    top_income_categories: List[CategoryTotal]
    daily_series: List[DailyFlow]


class WalletBalance(BaseModel):
    """
    Balance of one wallet as of the end of the range.
    The credit fields are only filled for credit wallets with a limit.
    """
    wallet_id: int
    name: str
    wallet_kind: Optional[Instrument]
    balance: Decimal
    total_income: Decimal
    total_expense: Decimal
    credit_limit: Optional[Decimal] = None
    credit_used: Optional[Decimal] = None
    credit_available: Optional[Decimal] = None


class AggregateResult(BaseModel):
    """Everything the charts and summary cards need, derived on demand."""
    date_from: Optional[date]
    date_to: Optional[date]
    record_count: int
    total_income: Decimal
    total_expense: Decimal
    net: Decimal
    top_expense_categories: List[CategoryTotal]
    top_income_categories: List[CategoryTotal]
    daily_series: List[DailyFlow]
    credit: InstrumentBreakdown
    debit: InstrumentBreakdown
    carried_balance: Decimal
    closing_balance: Decimal
    wallets: List[WalletBalance] = []
