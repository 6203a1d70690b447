"""
Aggregation service: totals, category rankings and daily series.

Dashboard cards, charts and reports all go through ``aggregate`` so the
numbers they show cannot drift apart.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence, Tuple

from app.models.transaction import TransactionKind
from app.models.wallet import Instrument
from app.schemas.dashboard import AggregateResult, CategoryTotal, DailyFlow, InstrumentBreakdown, WalletBalance
from app.schemas.filters import FilterCriteria
from app.schemas.transaction import TransactionRecord, WalletRef
from app.services.reconciliation_service import parse_timestamp

ZERO = Decimal("0")

# A record paired with its parsed timestamp
Dated = Tuple[TransactionRecord, datetime]


def _dated(records: Iterable[TransactionRecord]) -> List[Dated]:
    dated = []
    for record in records:
        moment = parse_timestamp(record.timestamp)
        if moment is not None:
            dated.append((record, moment))
    return dated


def in_range(moment: datetime, date_from: Optional[date], date_to: Optional[date]) -> bool:
    """Inclusive calendar-day bounds; a missing bound is open."""
    day = moment.date()
    if date_from is not None and day < date_from:
        return False
    if date_to is not None and day > date_to:
        return False
    return True


def flow_totals(records: Iterable[TransactionRecord]) -> Tuple[Decimal, Decimal]:
    """Return (income, expense) sums."""
    income = ZERO
    expense = ZERO
    for record in records:
        if record.kind == TransactionKind.income:
            income += record.effective_amount
        elif record.kind == TransactionKind.expense:
            expense += record.effective_amount
    return income, expense


def top_categories(
    records: Iterable[TransactionRecord],
    kind: TransactionKind,
    limit: int = 5
) -> List[CategoryTotal]:
    """
    Sum amounts per category for one kind and keep the largest ``limit``.
    Ties keep the order in which categories were first seen.
    """
    totals: Dict[str, Decimal] = {}
    for record in records:
        if record.kind != kind:
            continue
        label = record.category_label
        totals[label] = totals.get(label, ZERO) + record.effective_amount

    grand_total = sum(totals.values(), ZERO)
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]

    return [
        CategoryTotal(
            category=label,
            amount=amount,
            percent=float(amount / grand_total * 100) if grand_total > 0 else 0.0
        )
        for label, amount in ranked
    ]


def daily_series(dated: Sequence[Dated], window_days: int = 30, today: Optional[date] = None) -> List[DailyFlow]:
    """One entry per day of the trailing window, oldest first, empty days zero-filled."""
    if window_days < 1:
        raise ValueError("window_days must be at least 1")
    end = today or date.today()
    start = end - timedelta(days=window_days - 1)

    buckets: Dict[date, List[Decimal]] = {}
    for record, moment in dated:
        day = moment.date()
        if day < start or day > end:
            continue
        bucket = buckets.setdefault(day, [ZERO, ZERO])
        if record.kind == TransactionKind.income:
            bucket[0] += record.effective_amount
        elif record.kind == TransactionKind.expense:
            bucket[1] += record.effective_amount

    series = []
    for offset in range(window_days):
        day = start + timedelta(days=offset)
        income, expense = buckets.get(day, (ZERO, ZERO))
        series.append(DailyFlow(date=day, income=income, expense=expense, net=income - expense))
    return series


def split_by_instrument(dated: Sequence[Dated]) -> Dict[Instrument, List[Dated]]:
    """Partition into credit and debit using the wallet-first precedence rule."""
    partitions: Dict[Instrument, List[Dated]] = {Instrument.credit: [], Instrument.debit: []}
    for item in dated:
        partitions[item[0].effective_instrument].append(item)
    return partitions


def carried_balance(records: Iterable[TransactionRecord], date_from: Optional[date]) -> Decimal:
    """Net of everything dated strictly before ``date_from``; zero for an open window."""
    if date_from is None:
        return ZERO
    before = [record for record, moment in _dated(records) if moment.date() < date_from]
    income, expense = flow_totals(before)
    return income - expense


def wallet_balances(
    records: Iterable[TransactionRecord],
    wallets: Sequence[WalletRef] = (),
    wallet_ids: AbstractSet[int] = frozenset()
) -> List[WalletBalance]:
    """
    Income, expense and balance per wallet over the given records.

    Known wallets come first, in the order given, even without any movement;
    wallets only seen on records follow in order of first appearance. A
    non-empty ``wallet_ids`` keeps only those wallets. Records without a wallet
    belong to none.
    """
    refs: Dict[int, WalletRef] = {wallet.id: wallet for wallet in wallets}
    totals: Dict[int, List[Decimal]] = {wallet.id: [ZERO, ZERO] for wallet in wallets}
    for record in records:
        if record.wallet is None:
            continue
        refs.setdefault(record.wallet.id, record.wallet)
        bucket = totals.setdefault(record.wallet.id, [ZERO, ZERO])
        if record.kind == TransactionKind.income:
            bucket[0] += record.effective_amount
        elif record.kind == TransactionKind.expense:
            bucket[1] += record.effective_amount

    balances = []
    for wallet_id, (income, expense) in totals.items():
        if wallet_ids and wallet_id not in wallet_ids:
            continue
        wallet = refs[wallet_id]
        credit = {}
        if wallet.wallet_kind == Instrument.credit and wallet.credit_limit is not None:
            # Only spending uses up a card limit
            credit = {
                "credit_limit": wallet.credit_limit,
                "credit_used": expense,
                "credit_available": wallet.credit_limit - expense,
            }
        balances.append(WalletBalance(
            wallet_id=wallet_id,
            name=wallet.name,
            wallet_kind=wallet.wallet_kind,
            balance=income - expense,
            total_income=income,
            total_expense=expense,
            **credit,
        ))
    return balances


def _breakdown(
    instrument: Instrument,
    dated: Sequence[Dated],
    window_days: int,
    today: Optional[date],
    top_n: int
) -> InstrumentBreakdown:
    records = [record for record, _ in dated]
    income, expense = flow_totals(records)
    return InstrumentBreakdown(
        instrument=instrument,
        total_income=income,
        total_expense=expense,
        net=income - expense,
        top_expense_categories=top_categories(records, TransactionKind.expense, top_n),
        top_income_categories=top_categories(records, TransactionKind.income, top_n),
        daily_series=daily_series(dated, window_days, today),
    )


def aggregate(
    records: Sequence[TransactionRecord],
    criteria: Optional[FilterCriteria] = None,
    window_days: int = 30,
    today: Optional[date] = None,
    top_n: int = 5,
    wallets: Sequence[WalletRef] = ()
) -> AggregateResult:
    """
    Derive every dashboard figure from a reconciled record list.

    Records must pass ``criteria.matches`` and carry a parseable timestamp.
    Totals, rankings and series count those inside the date range. The carried
    balance looks at matching records before the range, and wallet balances at
    everything up to the end of it.
    """
    criteria = criteria or FilterCriteria()

    matched = _dated(record for record in records if criteria.matches(record))
    scoped = [
        (record, moment)
        for record, moment in matched
        if in_range(moment, criteria.date_from, criteria.date_to)
    ]
    scoped_records = [record for record, _ in scoped]
    through_end = [
        record for record, moment in matched if in_range(moment, None, criteria.date_to)
    ]

    income, expense = flow_totals(scoped_records)
    net = income - expense
    partitions = split_by_instrument(scoped)
    carried = carried_balance([record for record, _ in matched], criteria.date_from)

    return AggregateResult(
        date_from=criteria.date_from,
        date_to=criteria.date_to,
        record_count=len(scoped_records),
        total_income=income,
        total_expense=expense,
        net=net,
        top_expense_categories=top_categories(scoped_records, TransactionKind.expense, top_n),
        top_income_categories=top_categories(scoped_records, TransactionKind.income, top_n),
        daily_series=daily_series(scoped, window_days, today),
        credit=_breakdown(Instrument.credit, partitions[Instrument.credit], window_days, today, top_n),
        debit=_breakdown(Instrument.debit, partitions[Instrument.debit], window_days, today, top_n),
        carried_balance=carried,
        closing_balance=carried + net,
        wallets=wallet_balances(through_end, wallets, criteria.wallet_ids),
    )
