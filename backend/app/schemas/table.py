"""
Table view schemas.
"""

import enum
from typing import Annotated, Callable, Dict, Generic, List, Literal, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

RowT = TypeVar("RowT")

DEFAULT_SORT_COLUMN = "timestamp"
DEFAULT_PAGE_SIZE = 10


class SortDirection(str, enum.Enum):
    asc = "asc"
    desc = "desc"


class SortState(BaseModel):
    column: str
    direction: SortDirection

    model_config = ConfigDict(frozen=True)


class TableState(BaseModel):
    """Sort, filters, search and pagination of one table; replaced, never mutated."""
    sort: Optional[SortState] = SortState(column=DEFAULT_SORT_COLUMN, direction=SortDirection.desc)
    column_filters: Dict[str, str] = Field(default_factory=dict)
    global_search: str = ""
    page_index: int = Field(0, ge=0)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)

    model_config = ConfigDict(frozen=True)


class AutomaticPagination(BaseModel):
    """The table owns the full list and slices pages itself."""
    mode: Literal["automatic"] = "automatic"


class ManualPagination(BaseModel):
    """The caller owns paging: it reports totals and re-fetches on every page change."""
    mode: Literal["manual"] = "manual"
    total: int = Field(..., ge=0)
    page_count: int = Field(..., ge=0)
    on_change: Callable[[int, int], None]


PaginationConfig = Annotated[
    Union[AutomaticPagination, ManualPagination],
    Field(discriminator="mode"),
]


class TablePage(BaseModel, Generic[RowT]):
    rows: List[RowT]
    page_index: int
    page_size: int
    page_count: int
    total: int
    range_start: int
    range_end: int
    can_previous: bool
    can_next: bool

    @property
    def display_range(self) -> Tuple[int, int]:
        return self.range_start, self.range_end
