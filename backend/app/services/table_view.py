"""
Table view engine: sorting, filtering and pagination over a list of rows.

The same engine backs two kinds of tables. In automatic mode it holds the full
list and slices pages itself. In manual mode the caller holds the data, hands
in one page at a time together with the totals, and is told about every page
change through ``on_change`` so it can fetch the next one. Sorting and
filtering always run locally, on whatever rows the table currently holds.

State changes are pure functions ``TableState -> TableState``; ``TableView``
only keeps the current state and the rows together.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from app.schemas.table import (
    AutomaticPagination,
    ManualPagination,
    SortDirection,
    SortState,
    TablePage,
    TableState,
)
from app.schemas.transaction import KIND_ALIASES, INSTRUMENT_ALIASES, TransactionRecord
from app.services.reconciliation_service import parse_timestamp

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")

MATCH_ALL = "all"


class PaginationContractError(ValueError):
    """A caller mixed up automatic and manual pagination."""


class ColumnSpec(BaseModel):
    """
    One table column.
    ``display`` renders the cell text (also searched by the global search box),
    ``sort_key`` makes the column sortable and ``matches`` gives it a filter.
    A sort key of None always sorts last.
    """
    key: str
    label: str
    display: Callable[[Any], str]
    sort_key: Optional[Callable[[Any], Any]] = None
    matches: Optional[Callable[[Any, str], bool]] = None

    model_config = ConfigDict(frozen=True)


# State transitions

def toggle_sort(state: TableState, column: str) -> TableState:
    """Cycle a column through ascending, descending and unsorted."""
    current = state.sort
    if current is None or current.column != column:
        sort = SortState(column=column, direction=SortDirection.asc)
    elif current.direction == SortDirection.asc:
        sort = SortState(column=column, direction=SortDirection.desc)
    else:
        sort = None
    return state.model_copy(update={"sort": sort})


def set_column_filter(state: TableState, column: str, value: Optional[str]) -> TableState:
    """Set a column filter; an empty value removes it."""
    filters = dict(state.column_filters)
    if value is None or not value.strip():
        filters.pop(column, None)
    else:
        filters[column] = value
    return state.model_copy(update={"column_filters": filters})


def set_global_search(state: TableState, text: Optional[str]) -> TableState:
    return state.model_copy(update={"global_search": text or ""})


def clear_filters(state: TableState) -> TableState:
    return state.model_copy(update={"column_filters": {}, "global_search": ""})


def set_page_index(state: TableState, page_index: int) -> TableState:
    return state.model_copy(update={"page_index": max(page_index, 0)})


def set_page_size(state: TableState, page_size: int) -> TableState:
    """Change the page size and go back to the first page."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return state.model_copy(update={"page_size": page_size, "page_index": 0})


# Row pipeline

def filter_rows(
    rows: Iterable[RowT],
    state: TableState,
    columns: Mapping[str, ColumnSpec]
) -> List[RowT]:
    """Keep rows matching the global search and every active column filter."""
    active = [
        (columns[key], value)
        for key, value in state.column_filters.items()
        if key in columns and columns[key].matches is not None
    ]
    needle = state.global_search.strip().lower()

    kept = []
    for row in rows:
        if needle and not any(needle in column.display(row).lower() for column in columns.values()):
            continue
        if not all(column.matches(row, value) for column, value in active):
            continue
        kept.append(row)
    return kept


def sort_rows(
    rows: Sequence[RowT],
    sort: Optional[SortState],
    columns: Mapping[str, ColumnSpec]
) -> List[RowT]:
    """Stable sort on the active column; rows without a sort value go last."""
    if sort is None:
        return list(rows)
    column = columns.get(sort.column)
    if column is None or column.sort_key is None:
        return list(rows)

    keyed = []
    missing = []
    for row in rows:
        value = column.sort_key(row)
        if value is None:
            missing.append(row)
        else:
            keyed.append((value, row))

    keyed.sort(key=lambda item: item[0], reverse=sort.direction == SortDirection.desc)
    return [row for _, row in keyed] + missing


def page_count(row_count: int, page_size: int) -> int:
    return -(-row_count // page_size)


def display_range(page_index: int, page_size: int, total: int) -> Tuple[int, int]:
    """1-based first and last row shown on a page, (0, 0) when nothing is shown."""
    start = page_index * page_size + 1
    if total <= 0 or start > total:
        return 0, 0
    return start, min((page_index + 1) * page_size, total)


# Transaction columns

def format_timestamp(value: Optional[str]) -> str:
    moment = parse_timestamp(value)
    if moment is None:
        return value or ""
    return moment.strftime("%d/%m/%Y %H:%M")


def _contains(text: str, value: str) -> bool:
    return value.strip().lower() in text.lower()


def _at_least(record: TransactionRecord, value: str) -> bool:
    try:
        minimum = Decimal(value.strip())
    except InvalidOperation:
        return True
    if not minimum.is_finite():
        return True
    return record.effective_amount >= minimum


def _matches_kind(record: TransactionRecord, value: str) -> bool:
    key = value.strip().lower()
    return key == MATCH_ALL or record.kind.value == KIND_ALIASES.get(key, key)


def _matches_instrument(record: TransactionRecord, value: str) -> bool:
    key = value.strip().lower()
    return key == MATCH_ALL or record.effective_instrument.value == INSTRUMENT_ALIASES.get(key, key)


def _matches_wallet(record: TransactionRecord, value: str) -> bool:
    if record.wallet is None:
        return False
    return _contains(record.wallet.name, value)


def _matches_category(record: TransactionRecord, value: str) -> bool:
    if value.strip().lower() == MATCH_ALL:
        return True
    return _contains(record.category_label, value)


def transaction_columns() -> List[ColumnSpec]:
    """Columns of the transaction grid, in display order."""
    return [
        ColumnSpec(
            key="timestamp",
            label="Date/Time",
            display=lambda r: format_timestamp(r.timestamp),
            sort_key=lambda r: parse_timestamp(r.timestamp),
            matches=lambda r, v: _contains(format_timestamp(r.timestamp), v),
        ),
        ColumnSpec(
            key="description",
            label="Description",
            display=lambda r: r.description,
            sort_key=lambda r: r.description.lower(),
            matches=lambda r, v: _contains(r.description, v),
        ),
        ColumnSpec(
            key="kind",
            label="Type",
            display=lambda r: r.kind.value,
            sort_key=lambda r: r.kind.value,
            matches=_matches_kind,
        ),
        ColumnSpec(
            key="instrument",
            label="Method",
            display=lambda r: r.effective_instrument.value,
            sort_key=lambda r: r.effective_instrument.value,
            matches=_matches_instrument,
        ),
        ColumnSpec(
            key="wallet",
            label="Wallet",
            display=lambda r: r.wallet.name if r.wallet else "",
            sort_key=lambda r: r.wallet.name.lower() if r.wallet else None,
            matches=_matches_wallet,
        ),
        ColumnSpec(
            key="category",
            label="Category",
            display=lambda r: r.category_label,
            sort_key=lambda r: r.category_label.lower(),
            matches=_matches_category,
        ),
        ColumnSpec(
            key="amount",
            label="Amount",
            display=lambda r: f"{r.effective_amount:.2f}",
            sort_key=lambda r: r.amount,
            matches=_at_least,
        ),
    ]


class TableView(Generic[RowT]):
    """Current rows and state of one table, plus the controls that change them."""

    def __init__(
        self,
        rows: Iterable[RowT],
        columns: Optional[Sequence[ColumnSpec]] = None,
        pagination: Optional[Union[AutomaticPagination, ManualPagination]] = None,
        state: Optional[TableState] = None
    ):
        self._columns: Dict[str, ColumnSpec] = {
            column.key: column for column in (columns if columns is not None else transaction_columns())
        }
        self._pagination = pagination or AutomaticPagination()
        self._state = state or TableState()
        self._rows = list(rows)
        # Set in manual mode once a page change is forwarded, until the new page arrives
        self._awaiting_page = False
        self._check_supplied_page()

    @property
    def state(self) -> TableState:
        return self._state

    @property
    def columns(self) -> List[ColumnSpec]:
        return list(self._columns.values())

    @property
    def is_manual(self) -> bool:
        return isinstance(self._pagination, ManualPagination)

    def _check_supplied_page(self) -> None:
        if self.is_manual and len(self._rows) > self._state.page_size:
            raise PaginationContractError(
                f"Manual pagination got {len(self._rows)} rows for a page of {self._state.page_size}; "
                "pass the current page only"
            )

    def _column(self, key: str) -> ColumnSpec:
        if key not in self._columns:
            raise ValueError(f"Unknown column: {key}")
        return self._columns[key]

    def _set_filters(self, state: TableState) -> None:
        # A narrower result in automatic mode could leave us past the last page
        if not self.is_manual:
            state = set_page_index(state, 0)
        self._state = state

    def _set_pagination(self, state: TableState) -> None:
        previous = (self._state.page_index, self._state.page_size)
        self._state = state
        current = (state.page_index, state.page_size)
        if self.is_manual and current != previous:
            logger.debug("Forwarding page change %s -> %s", previous, current)
            self._awaiting_page = True
            self._pagination.on_change(*current)

    # Sorting and filtering

    def toggle_sort(self, column: str) -> TableState:
        if self._column(column).sort_key is None:
            raise ValueError(f"Column is not sortable: {column}")
        self._state = toggle_sort(self._state, column)
        return self._state

    def set_column_filter(self, column: str, value: Optional[str]) -> TableState:
        if self._column(column).matches is None:
            raise ValueError(f"Column has no filter: {column}")
        self._set_filters(set_column_filter(self._state, column, value))
        return self._state

    def set_global_search(self, text: Optional[str]) -> TableState:
        self._set_filters(set_global_search(self._state, text))
        return self._state

    def clear_filters(self) -> TableState:
        self._set_filters(clear_filters(self._state))
        return self._state

    # Pagination

    def _page_count(self) -> int:
        if isinstance(self._pagination, ManualPagination):
            return self._pagination.page_count
        visible = filter_rows(self._rows, self._state, self._columns)
        return page_count(len(visible), self._state.page_size)

    def go_to_page(self, page_index: int) -> TableState:
        last = max(self._page_count() - 1, 0)
        self._set_pagination(set_page_index(self._state, min(page_index, last)))
        return self._state

    def next_page(self) -> TableState:
        return self.go_to_page(self._state.page_index + 1)

    def previous_page(self) -> TableState:
        return self.go_to_page(self._state.page_index - 1)

    def set_page_size(self, page_size: int) -> TableState:
        self._set_pagination(set_page_size(self._state, page_size))
        return self._state

    def replace_rows(
        self,
        rows: Iterable[RowT],
        total: Optional[int] = None,
        page_count: Optional[int] = None
    ) -> None:
        """
        Swap in new data.
        Manual tables need the new totals with every page; automatic tables
        compute their own and refuse them.
        """
        if isinstance(self._pagination, ManualPagination):
            if total is None or page_count is None:
                raise PaginationContractError("Manual pagination needs total and page_count with every page")
            self._pagination = ManualPagination(
                total=total,
                page_count=page_count,
                on_change=self._pagination.on_change,
            )
        elif total is not None or page_count is not None:
            raise PaginationContractError("Automatic pagination computes total and page_count itself")

        self._rows = list(rows)
        self._awaiting_page = False
        self._check_supplied_page()
        if not self.is_manual:
            last = max(self._page_count() - 1, 0)
            if self._state.page_index > last:
                self._state = set_page_index(self._state, last)

    # Output

    @property
    def awaiting_page(self) -> bool:
        """True while a manual table waits for ``replace_rows`` after a page change."""
        return self._awaiting_page

    def visible_rows(self) -> List[RowT]:
        """
        Filtered and sorted rows, before pagination.
        Empty while a manual table waits for its next page; the rows it holds
        belong to the page it left.
        """
        if self._awaiting_page:
            return []
        visible = filter_rows(self._rows, self._state, self._columns)
        return sort_rows(visible, self._state.sort, self._columns)

    def page(self) -> TablePage:
        rows = self.visible_rows()
        size = self._state.page_size
        index = self._state.page_index

        if isinstance(self._pagination, ManualPagination):
            # Rows already are the page; slicing them again would drop data
            total = self._pagination.total
            pages = self._pagination.page_count
        else:
            total = len(rows)
            pages = page_count(total, size)
            index = min(index, max(pages - 1, 0))
            rows = rows[index * size:(index + 1) * size]

        start, end = display_range(index, size, total)
        if self._awaiting_page:
            start, end = 0, 0
        return TablePage(
            rows=rows,
            page_index=index,
            page_size=size,
            page_count=pages,
            total=total,
            range_start=start,
            range_end=end,
            can_previous=index > 0,
            can_next=index + 1 < pages,
        )
