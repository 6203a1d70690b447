"""
Filter schemas.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from app.models.transaction import TransactionKind
from app.models.wallet import Instrument
from app.schemas.transaction import TransactionRecord


class FilterCriteria(BaseModel):
    """
    Filter shared by the transaction list, the dashboard and reports.

    Rebuilt on every interaction; never stored. Date bounds are inclusive
    calendar days and are applied by the aggregator, everything else by
    ``matches``.
    """
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    description: Optional[str] = None
    category: Optional[str] = None
    wallet_ids: frozenset[int] = frozenset()
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    kind: Optional[TransactionKind] = None
    instrument: Optional[Instrument] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_bounds(self) -> "FilterCriteria":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError("min_amount must not be greater than max_amount")
        return self

    def with_range(self, date_from: Optional[date], date_to: Optional[date]) -> "FilterCriteria":
        """Same criteria over another date range."""
        return FilterCriteria(**{**self.model_dump(), "date_from": date_from, "date_to": date_to})

    def matches(self, record: TransactionRecord) -> bool:
        """Apply every non-date criterion to a single record."""
        if self.description and self.description.lower() not in record.description.lower():
            return False
        if self.category and record.category_label.lower() != self.category.strip().lower():
            return False
        if self.wallet_ids and (record.wallet is None or record.wallet.id not in self.wallet_ids):
            return False
        amount = record.effective_amount
        if self.min_amount is not None and amount < self.min_amount:
            return False
        if self.max_amount is not None and amount > self.max_amount:
            return False
        if self.kind is not None and record.kind != self.kind:
            return False
        if self.instrument is not None and record.effective_instrument != self.instrument:
            return False
        return True
