"""Tests for dashboard aggregation."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from app.models.wallet import Instrument
from app.schemas.filters import FilterCriteria
from app.schemas.transaction import WalletRef
from app.services.aggregation_service import (
    aggregate,
    carried_balance,
    daily_series,
    flow_totals,
    top_categories,
    wallet_balances,
)
from app.models.transaction import TransactionKind

TODAY = date(2024, 3, 31)


class TestFlowTotals:
    """Test income/expense totals."""

    def test_empty(self):
        """No records means zero totals, not None."""
        result = aggregate([], FilterCriteria(), today=TODAY)
        assert result.total_income == Decimal("0")
        assert result.total_expense == Decimal("0")
        assert result.net == Decimal("0")
        assert result.record_count == 0
        assert result.top_expense_categories == []

    def test_totals_and_net(self, record_factory):
        """Net is income minus expense."""
        records = [
            record_factory(id=1, kind="income", amount="1000"),
            record_factory(id=2, kind="expense", amount="250.50"),
            record_factory(id=3, kind="expense", amount="49.50"),
        ]
        result = aggregate(records, today=TODAY)
        assert result.total_income == Decimal("1000")
        assert result.total_expense == Decimal("300.00")
        assert result.net == result.total_income - result.total_expense == Decimal("700.00")

    def test_malformed_amount_counts_as_zero(self, record_factory):
        """A non-numeric amount adds nothing instead of failing."""
        records = [
            record_factory(id=1, kind="expense", amount="abc"),
            record_factory(id=2, kind="expense", amount="20"),
            record_factory(id=3, kind="expense", amount=None),
        ]
        result = aggregate(records, today=TODAY)
        assert result.total_expense == Decimal("20")
        assert result.record_count == 3

    def test_invalid_timestamps_excluded(self, record_factory):
        """Undated records never reach any sum."""
        records = [
            record_factory(id=1, kind="income", amount="100"),
            record_factory(id=2, kind="income", amount="500", timestamp="sem data"),
            record_factory(id=3, kind="income", amount="500", timestamp=None),
        ]
        result = aggregate(records, today=TODAY)
        assert result.total_income == Decimal("100")
        assert result.record_count == 1

    def test_income_on_credit_is_still_counted(self, record_factory):
        """Legacy income booked on credit is summed, not rejected."""
        records = [record_factory(id=1, kind="income", instrument="credit", amount="80")]
        result = aggregate(records, today=TODAY)
        assert result.total_income == Decimal("80")
        assert result.credit.total_income == Decimal("80")

    def test_flow_totals_helper(self, record_factory):
        """flow_totals returns an (income, expense) pair."""
        records = [record_factory(kind="income", amount="5"), record_factory(kind="expense", amount="2")]
        assert flow_totals(records) == (Decimal("5"), Decimal("2"))


class TestDateScope:
    """Test the date range filter."""

    def test_inclusive_bounds(self, record_factory):
        """Both boundary days are inside the range."""
        records = [
            record_factory(id=1, amount="1", timestamp="2024-03-01T00:00:00"),
            record_factory(id=2, amount="2", timestamp="2024-03-10T23:59:59"),
            record_factory(id=3, amount="4", timestamp="2024-02-29T23:59:59"),
            record_factory(id=4, amount="8", timestamp="2024-03-11T00:00:00"),
        ]
        criteria = FilterCriteria(date_from=date(2024, 3, 1), date_to=date(2024, 3, 10))
        result = aggregate(records, criteria, today=TODAY)
        assert result.total_expense == Decimal("3")

    def test_unbounded(self, record_factory):
        """Without bounds every dated record is in scope."""
        records = [
            record_factory(id=1, amount="1", timestamp="2001-01-01"),
            record_factory(id=2, amount="2", timestamp="2030-01-01"),
        ]
        assert aggregate(records, today=TODAY).total_expense == Decimal("3")


class TestCategoryBreakdown:
    """Test the top category rankings."""

    def test_sorted_descending(self, record_factory):
        """Categories are ranked by their sum."""
        records = [
            record_factory(category="lazer", amount="10"),
            record_factory(category="moradia", amount="900"),
            record_factory(category="lazer", amount="15"),
            record_factory(category="transporte", amount="40"),
        ]
        result = top_categories(records, TransactionKind.expense)
        assert [(c.category, c.amount) for c in result] == [
            ("moradia", Decimal("900")),
            ("transporte", Decimal("40")),
            ("lazer", Decimal("25")),
        ]

    def test_percent_of_kind_total(self, record_factory):
        """Percent is relative to the kind's total."""
        records = [
            record_factory(category="a", amount="75"),
            record_factory(category="b", amount="25"),
        ]
        result = top_categories(records, TransactionKind.expense)
        assert result[0].percent == pytest.approx(75.0)
        assert result[1].percent == pytest.approx(25.0)

    def test_missing_category_is_outros(self, record_factory):
        """Missing or blank categories are grouped as outros."""
        records = [
            record_factory(category=None, amount="5"),
            record_factory(category="  ", amount="5"),
        ]
        result = top_categories(records, TransactionKind.expense)
        assert [(c.category, c.amount) for c in result] == [("outros", Decimal("10"))]

    def test_income_and_expense_ranked_separately(self, record_factory):
        """Income categories never show up in the expense ranking."""
        records = [
            record_factory(id=1, category="salario", kind="income", amount="5000"),
            record_factory(id=2, category="mercado", kind="expense", amount="100"),
        ]
        result = aggregate(records, today=TODAY)
        assert [c.category for c in result.top_expense_categories] == ["mercado"]
        assert [c.category for c in result.top_income_categories] == ["salario"]

    def test_tie_for_fifth_keeps_first_seen(self, record_factory):
        """Two categories tied for fifth: exactly five entries, the first seen wins."""
        sums = [
            ("moradia", "900"),
            ("saude", "800"),
            ("lazer", "700"),
            ("educacao", "500"),
            ("alimentacao", "300"),
            ("transporte", "300"),
        ]
        records = [record_factory(category=c, amount=a) for c, a in sums]
        result = top_categories(records, TransactionKind.expense, limit=5)
        assert len(result) == 5
        assert [c.category for c in result] == ["moradia", "saude", "lazer", "educacao", "alimentacao"]

    def test_order_is_deterministic(self, record_factory):
        """Same input order, same ranking."""
        records = [record_factory(category=c, amount="10") for c in ("b", "a", "c")]
        first = top_categories(records, TransactionKind.expense)
        second = top_categories(records, TransactionKind.expense)
        assert first == second
        assert [c.category for c in first] == ["b", "a", "c"]


class TestDailySeries:
    """Test the per-day flow series."""

    def test_always_window_length(self, record_factory):
        """The series has one entry per day whatever the input."""
        result = aggregate([], today=TODAY)
        assert len(result.daily_series) == 30
        assert len(aggregate([], window_days=7, today=TODAY).daily_series) == 7

    def test_ascending_and_contiguous(self):
        """Days run oldest to newest with no gaps, ending today."""
        series = daily_series([], window_days=30, today=TODAY)
        assert series[0].date == TODAY - timedelta(days=29)
        assert series[-1].date == TODAY
        for previous, current in zip(series, series[1:]):
            assert current.date - previous.date == timedelta(days=1)

    def test_sparse_input_zero_filled(self, record_factory):
        """40 records on 5 days leave 25 empty days."""
        days = [date(2024, 3, d) for d in (3, 9, 15, 21, 30)]
        records = [
            record_factory(
                id=i,
                kind="income" if i % 2 else "expense",
                amount="10",
                timestamp=f"{days[i % 5].isoformat()}T{8 + i % 10:02d}:00:00",
            )
            for i in range(40)
        ]
        result = aggregate(records, today=TODAY)
        assert len(result.daily_series) == 30
        empty = [d for d in result.daily_series if d.income == 0 and d.expense == 0 and d.net == 0]
        assert len(empty) == 25

    def test_buckets_by_date_component(self, record_factory):
        """Records at different times of the same day share a bucket."""
        records = [
            record_factory(id=1, kind="income", amount="100", timestamp="2024-03-31T00:05:00"),
            record_factory(id=2, kind="expense", amount="30", timestamp="2024-03-31T23:55:00"),
        ]
        last = aggregate(records, today=TODAY).daily_series[-1]
        assert (last.income, last.expense, last.net) == (Decimal("100"), Decimal("30"), Decimal("70"))

    def test_records_outside_window_ignored(self, record_factory):
        """Older records count in totals but not in the series."""
        records = [record_factory(id=1, amount="10", timestamp="2023-12-01T10:00:00")]
        result = aggregate(records, today=TODAY)
        assert result.total_expense == Decimal("10")
        assert all(d.expense == 0 for d in result.daily_series)

    def test_invalid_window(self):
        """A window shorter than one day is a programming error."""
        with pytest.raises(ValueError):
            aggregate([], window_days=0, today=TODAY)


class TestInstrumentSplit:
    """Test the credit/debit partition."""

    def test_wallet_kind_overrides_instrument(self, record_factory):
        """A credit wallet wins over a debit flag."""
        wallet = WalletRef(id=1, name="Nubank", wallet_kind=Instrument.credit)
        records = [record_factory(id=1, amount="60", instrument="debit", wallet=wallet)]
        result = aggregate(records, today=TODAY)
        assert result.credit.total_expense == Decimal("60")
        assert result.debit.total_expense == Decimal("0")

    def test_wallet_without_kind_falls_back(self, record_factory):
        """A wallet with no kind leaves the transaction flag in charge."""
        wallet = WalletRef(id=1, name="Carteira", wallet_kind=None)
        records = [record_factory(id=1, amount="60", instrument="credit", wallet=wallet)]
        assert aggregate(records, today=TODAY).credit.total_expense == Decimal("60")

    def test_unspecified_is_debit(self, record_factory):
        """No wallet and no instrument counts as debit."""
        records = [record_factory(id=1, amount="15", instrument=None)]
        result = aggregate(records, today=TODAY)
        assert result.debit.total_expense == Decimal("15")
        assert result.credit.total_expense == Decimal("0")

    def test_partitions_add_up(self, record_factory):
        """Credit and debit sub-totals add up to the overall totals."""
        records = [
            record_factory(id=1, kind="income", amount="500", instrument="debit"),
            record_factory(id=2, kind="expense", amount="120", instrument="credit", category="lazer"),
            record_factory(id=3, kind="expense", amount="80", instrument=None),
        ]
        result = aggregate(records, today=TODAY)
        assert result.credit.total_expense + result.debit.total_expense == result.total_expense
        assert result.credit.total_income + result.debit.total_income == result.total_income
        assert [c.category for c in result.credit.top_expense_categories] == ["lazer"]
        assert len(result.credit.daily_series) == 30
        assert result.credit.daily_series[13].expense == Decimal("120")


class TestCarriedBalance:
    """Test the balance carried into the filtered window."""

    def test_zero_without_start(self, record_factory):
        """An open window has nothing before it."""
        records = [record_factory(id=1, kind="income", amount="100", timestamp="2020-01-01")]
        result = aggregate(records, FilterCriteria(), today=TODAY)
        assert result.carried_balance == Decimal("0")
        assert carried_balance(records, None) == Decimal("0")

    def test_strictly_before_start(self, record_factory):
        """Only records before the start day are carried over."""
        records = [
            record_factory(id=1, kind="income", amount="1000", timestamp="2024-02-10T09:00:00"),
            record_factory(id=2, kind="expense", amount="300", timestamp="2024-02-29T23:59:00"),
            record_factory(id=3, kind="expense", amount="50", timestamp="2024-03-01T00:00:00"),
            record_factory(id=4, kind="income", amount="999", timestamp="garbage"),
        ]
        criteria = FilterCriteria(date_from=date(2024, 3, 1), date_to=date(2024, 3, 31))
        result = aggregate(records, criteria, today=TODAY)
        assert result.carried_balance == Decimal("700")
        assert result.net == Decimal("-50")
        assert result.closing_balance == Decimal("650")


class TestSharedFilter:
    """Test that aggregate applies the non-date criteria itself."""

    def test_description_is_literal(self, record_factory):
        """Underscores and percent signs match only themselves."""
        records = [
            record_factory(id=1, description="pix_joao", amount="10"),
            record_factory(id=2, description="pixXjoao", amount="500"),
        ]
        result = aggregate(records, FilterCriteria(description="pix_joao"), today=TODAY)
        assert result.total_expense == Decimal("10")
        assert result.record_count == 1

    def test_accented_category(self, record_factory):
        records = [
            record_factory(id=1, category="Alimentação", amount="10"),
            record_factory(id=2, category="alimentacao", amount="3"),
        ]
        result = aggregate(records, FilterCriteria(category="ALIMENTAÇÃO"), today=TODAY)
        assert result.total_expense == Decimal("10")

    def test_carried_balance_uses_same_filter(self, record_factory):
        """Records left out by the filter are not carried into the window."""
        records = [
            record_factory(id=1, kind="income", amount="100", category="salario", timestamp="2024-02-01"),
            record_factory(id=2, kind="expense", amount="40", category="lazer", timestamp="2024-02-02"),
        ]
        criteria = FilterCriteria(date_from=date(2024, 3, 1), category="lazer")
        assert aggregate(records, criteria, today=TODAY).carried_balance == Decimal("-40")


class TestWalletBalances:
    """Test per-wallet balances."""

    def test_balance_income_and_expense(self, record_factory):
        wallet = WalletRef(id=1, name="Conta", wallet_kind=Instrument.debit)
        records = [
            record_factory(id=1, kind="income", amount="500", wallet=wallet),
            record_factory(id=2, kind="expense", amount="120", wallet=wallet),
            record_factory(id=3, kind="expense", amount="999", wallet=None),
        ]
        (balance,) = wallet_balances(records, [wallet])
        assert (balance.total_income, balance.total_expense, balance.balance) == (
            Decimal("500"), Decimal("120"), Decimal("380")
        )
        assert balance.credit_limit is None

    def test_credit_limit(self, record_factory):
        """Only expenses use up a card limit."""
        card = WalletRef(id=2, name="Cartao", wallet_kind=Instrument.credit, credit_limit=Decimal("1000"))
        records = [
            record_factory(id=1, kind="expense", amount="300", wallet=card),
            record_factory(id=2, kind="income", amount="50", wallet=card),
        ]
        (balance,) = wallet_balances(records, [card])
        assert balance.credit_used == Decimal("300")
        assert balance.credit_available == Decimal("700")
        assert balance.balance == Decimal("-250")

    def test_credit_wallet_without_limit(self, record_factory):
        card = WalletRef(id=2, name="Cartao", wallet_kind=Instrument.credit)
        (balance,) = wallet_balances([record_factory(id=1, wallet=card)], [card])
        assert balance.credit_limit is None
        assert balance.credit_available is None

    def test_known_wallets_first_then_seen(self, record_factory):
        """Idle known wallets are listed; unknown wallets follow in first-seen order."""
        idle = WalletRef(id=1, name="Poupanca")
        other = WalletRef(id=9, name="Carteira")
        result = wallet_balances([record_factory(id=1, wallet=other)], [idle])
        assert [(b.wallet_id, b.balance) for b in result] == [(1, Decimal("0")), (9, Decimal("-10.00"))]

    def test_wallet_ids_restrict(self, record_factory):
        wallets = [WalletRef(id=1, name="A"), WalletRef(id=2, name="B")]
        assert [b.wallet_id for b in wallet_balances([], wallets, frozenset({2}))] == [2]

    def test_balance_runs_through_range_end(self, record_factory):
        """Wallet balances include what happened before the range, not after it."""
        wallet = WalletRef(id=1, name="Conta")
        records = [
            record_factory(id=1, kind="income", amount="100", wallet=wallet, timestamp="2024-01-10"),
            record_factory(id=2, kind="expense", amount="30", wallet=wallet, timestamp="2024-03-05"),
            record_factory(id=3, kind="expense", amount="7", wallet=wallet, timestamp="2024-04-02"),
        ]
        criteria = FilterCriteria(date_from=date(2024, 3, 1), date_to=date(2024, 3, 31))
        result = aggregate(records, criteria, today=TODAY, wallets=[wallet])
        assert result.wallets[0].balance == Decimal("70")
