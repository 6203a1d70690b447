"""Service for printable financial reports."""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from app.models.transaction import TransactionKind
from app.models.wallet import Instrument
from app.schemas.filters import FilterCriteria
from app.schemas.report import CategorySettlement, ExpenseSettlement, IncomeSettlement, ReportSummary
from app.schemas.transaction import TransactionRecord, WalletRef
from app.services.aggregation_service import ZERO, aggregate, in_range
from app.services.reconciliation_service import parse_timestamp, reconcile


def _most_recent_first(records: Sequence[TransactionRecord]) -> List[TransactionRecord]:
    """Newest first; records without a usable timestamp go to the end."""
    dated = [(parse_timestamp(r.timestamp), r) for r in records]
    valid = sorted(
        [(moment, r) for moment, r in dated if moment is not None],
        key=lambda item: item[0],
        reverse=True
    )
    return [r for _, r in valid] + [r for moment, r in dated if moment is None]


def settle_expenses(records: Sequence[TransactionRecord]) -> ExpenseSettlement:
    """
    Split expenses into settled (debit) and pending (credit), overall and per category.
    Categories are ordered by their total, largest first.
    """
    by_category: Dict[str, List[Decimal]] = {}
    for record in records:
        if record.kind != TransactionKind.expense:
            continue
        bucket = by_category.setdefault(record.category_label, [ZERO, ZERO])
        if record.effective_instrument == Instrument.credit:
            bucket[1] += record.effective_amount
        else:
            bucket[0] += record.effective_amount

    categories = sorted(
        (
            CategorySettlement(category=label, settled=settled, pending=pending, total=settled + pending)
            for label, (settled, pending) in by_category.items()
        ),
        key=lambda c: c.total,
        reverse=True
    )
    settled = sum((c.settled for c in categories), ZERO)
    pending = sum((c.pending for c in categories), ZERO)

    return ExpenseSettlement(total=settled + pending, settled=settled, pending=pending, by_category=categories)


def settle_income(records: Sequence[TransactionRecord]) -> IncomeSettlement:
    """Split income into received (debit) and receivable (credit)."""
    received = ZERO
    receivable = ZERO
    for record in records:
        if record.kind != TransactionKind.income:
            continue
        if record.effective_instrument == Instrument.credit:
            receivable += record.effective_amount
        else:
            received += record.effective_amount
    return IncomeSettlement(total=received + receivable, received=received, receivable=receivable)


def build_report(
    records: Sequence[TransactionRecord],
    criteria: Optional[FilterCriteria] = None,
    window_days: int = 30,
    today: Optional[date] = None,
    top_n: int = 5,
    wallets: Sequence[WalletRef] = ()
) -> ReportSummary:
    """
    Build report data for a filter.

    The summary block is the same ``aggregate`` call the dashboard makes, so a
    report never disagrees with the screen it was printed from. The settlement
    blocks only cover records dated inside the range. The listing also shows
    undated records when the filter has no date bounds.
    """
    criteria = criteria or FilterCriteria()
    unique = [r for r in reconcile(records) if criteria.matches(r)]
    bounded = criteria.date_from is not None or criteria.date_to is not None

    in_period = []
    listed = []
    for record in unique:
        moment = parse_timestamp(record.timestamp)
        if moment is None:
            if not bounded:
                listed.append(record)
        elif in_range(moment, criteria.date_from, criteria.date_to):
            in_period.append(record)
            listed.append(record)

    return ReportSummary(
        criteria=criteria,
        summary=aggregate(
            unique, criteria, window_days=window_days, today=today, top_n=top_n, wallets=wallets
        ),
        expenses=settle_expenses(in_period),
        income=settle_income(in_period),
        transactions=_most_recent_first(listed),
    )
