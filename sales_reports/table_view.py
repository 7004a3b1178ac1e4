# sales_reports/table_view.py
"""
Table view engine for Sales Reports
Search text, single-column sort, pagination and row expansion

State changes are pure `(state, action) -> state` transitions; the
TableViewEngine class only holds the current state between user actions.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, Hashable, List, Mapping, Optional, Sequence, Tuple

from .common import is_missing, stringify_value
from .config import REPORT_CONFIG
from .filters import text_predicate

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


# ==================== State ====================

class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class PageState:
    page_index: int = 0
    page_size: int = 10


@dataclass(frozen=True)
class TableViewState:
    """Everything the table owns across user interactions"""
    search_text: str = ''
    sort: Optional[SortSpec] = None
    page: PageState = field(default_factory=PageState)
    expanded: FrozenSet[Hashable] = frozenset()
    single_open: bool = False


@dataclass(frozen=True)
class VisiblePage:
    """Rows of the current page plus the counts needed for pagination"""
    rows: List[Record]
    total_filtered: int
    total_pages: int
    page_index: int
    start: int
    end: int
    expanded_keys: FrozenSet[Hashable] = frozenset()

    @property
    def needs_clamp(self) -> bool:
        """Empty slice while earlier pages have data"""
        return not self.rows and self.page_index > 0 and self.total_filtered > 0

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_index + 1 < self.total_pages

    def summary(self) -> str:
        if not self.total_filtered:
            return "No data available"
        return f"Showing {self.start + 1} to {self.end} of {self.total_filtered} results"


# ==================== Actions ====================

class TableActionType(Enum):
    SET_SEARCH = "set_search"
    SET_SORT = "set_sort"
    TOGGLE_EXPAND = "toggle_expand"
    GO_TO_PAGE = "go_to_page"
    NEXT_PAGE = "next_page"
    PREV_PAGE = "prev_page"
    SET_PAGE_SIZE = "set_page_size"
    CLAMP = "clamp"
    COLLAPSE_ALL = "collapse_all"
    RESET = "reset"


@dataclass(frozen=True)
class TableAction:
    type: TableActionType
    value: Any = None


# ==================== Transitions ====================

def total_pages_for(total: int, page_size: int) -> int:
    if page_size <= 0 or total <= 0:
        return 0
    return math.ceil(total / page_size)


def set_search_text(state: TableViewState, text: str) -> TableViewState:
    """Update search text and go back to the first page"""
    return replace(state, search_text=text or '', page=replace(state.page, page_index=0))


def set_sort(state: TableViewState, sort_field: str) -> TableViewState:
    """Cycle asc -> desc -> none on the same field; a new field starts asc"""
    current = state.sort
    if current is None or current.field != sort_field:
        new_sort = SortSpec(sort_field, SortDirection.ASC)
    elif current.direction == SortDirection.ASC:
        new_sort = SortSpec(sort_field, SortDirection.DESC)
    else:
        new_sort = None
    return replace(state, sort=new_sort)


def toggle_expand(state: TableViewState, row_key: Hashable) -> TableViewState:
    """Open or close a row's nested detail"""
    if row_key in state.expanded:
        return replace(state, expanded=state.expanded - {row_key})
    if state.single_open:
        return replace(state, expanded=frozenset({row_key}))
    return replace(state, expanded=state.expanded | {row_key})


def collapse_all(state: TableViewState) -> TableViewState:
    return replace(state, expanded=frozenset())


def go_to_page(state: TableViewState, page_index: int) -> TableViewState:
    return replace(state, page=replace(state.page, page_index=max(0, int(page_index))))


def set_page_size(state: TableViewState, page_size: int) -> TableViewState:
    if page_size <= 0:
        raise ValueError(f"Page size must be positive: {page_size}")
    return replace(state, page=PageState(page_index=0, page_size=page_size))


def clamp_page(state: TableViewState, total_pages: int) -> TableViewState:
    """Move the page index to the last valid page when it is out of range"""
    last = max(total_pages - 1, 0)
    if state.page.page_index > last:
        return go_to_page(state, last)
    return state


def apply_action(state: TableViewState, action: TableAction) -> TableViewState:
    """Apply a TableAction to a state"""
    if action.type == TableActionType.SET_SEARCH:
        return set_search_text(state, action.value)
    if action.type == TableActionType.SET_SORT:
        return set_sort(state, action.value)
    if action.type == TableActionType.TOGGLE_EXPAND:
        return toggle_expand(state, action.value)
    if action.type == TableActionType.GO_TO_PAGE:
        return go_to_page(state, action.value)
    if action.type == TableActionType.NEXT_PAGE:
        return go_to_page(state, state.page.page_index + 1)
    if action.type == TableActionType.PREV_PAGE:
        return go_to_page(state, state.page.page_index - 1)
    if action.type == TableActionType.SET_PAGE_SIZE:
        return set_page_size(state, action.value)
    if action.type == TableActionType.CLAMP:
        return clamp_page(state, action.value)
    if action.type == TableActionType.COLLAPSE_ALL:
        return collapse_all(state)
    if action.type == TableActionType.RESET:
        return TableViewState(page=PageState(page_size=state.page.page_size),
                              single_open=state.single_open)
    raise ValueError(f"Unknown table action: {action.type}")


# ==================== Derivation ====================

def _sort_key(value: Any) -> Tuple[int, Any]:
    # Numbers before text so mixed columns still compare
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return (0, float(value))
    return (1, stringify_value(value).lower())


def sort_records(records: Sequence[Record], sort: Optional[SortSpec]) -> List[Record]:
    """Stable sort on one field; records missing the field go last"""
    if sort is None:
        return list(records)

    present = [r for r in records if not is_missing(r.get(sort.field))]
    missing = [r for r in records if is_missing(r.get(sort.field))]

    present.sort(key=lambda r: _sort_key(r.get(sort.field)),
                 reverse=sort.direction == SortDirection.DESC)
    return present + missing


def derive_visible_page(records: Sequence[Record],
                        state: TableViewState,
                        key_field: str = 'id',
                        search_fields: Optional[Sequence[str]] = None) -> VisiblePage:
    """Search, sort and slice; same inputs always give the same page"""
    matches = text_predicate(state.search_text, search_fields)
    filtered = [r for r in records if matches(r)]
    ordered = sort_records(filtered, state.sort)

    total = len(ordered)
    page_size = state.page.page_size
    page_index = state.page.page_index
    start = min(page_index * page_size, total)
    end = min(start + page_size, total)
    rows = ordered[start:end]

    visible_keys = {row_key(r, start + i, key_field) for i, r in enumerate(rows)}

    return VisiblePage(
        rows=rows,
        total_filtered=total,
        total_pages=total_pages_for(total, page_size),
        page_index=page_index,
        start=start,
        end=end,
        expanded_keys=frozenset(visible_keys & state.expanded),
    )


def row_key(record: Record, index: int, key_field: str = 'id') -> Hashable:
    """Record identity, falling back to its position when it has no key"""
    value = record.get(key_field)
    if is_missing(value) or value == '':
        return index
    return value


# ==================== Engine ====================

class TableViewEngine:
    """
    Stateful view over an external record collection

    Usage:
        table = TableViewEngine(page_size=10)
        table.set_search_text("agro")
        page = table.render(records)
    """

    def __init__(self,
                 page_size: Optional[int] = None,
                 key_field: str = 'id',
                 search_fields: Optional[Sequence[str]] = None,
                 single_open: bool = False):
        size = page_size or REPORT_CONFIG["TABLE_PAGE_SIZE"]
        self.key_field = key_field
        self.search_fields = search_fields
        self.state = TableViewState(page=PageState(page_size=size), single_open=single_open)

    # ==================== Actions ====================

    def dispatch(self, action: TableAction) -> TableViewState:
        self.state = apply_action(self.state, action)
        logger.debug(f"Table action {action.type.value}: {action.value!r}")
        return self.state

    def set_search_text(self, text: str):
        self.dispatch(TableAction(TableActionType.SET_SEARCH, text))

    def set_sort(self, sort_field: str):
        self.dispatch(TableAction(TableActionType.SET_SORT, sort_field))

    def toggle_expand(self, key: Hashable):
        self.dispatch(TableAction(TableActionType.TOGGLE_EXPAND, key))

    def collapse_all(self):
        self.dispatch(TableAction(TableActionType.COLLAPSE_ALL))

    def go_to_page(self, page_index: int):
        self.dispatch(TableAction(TableActionType.GO_TO_PAGE, page_index))

    def next_page(self):
        self.dispatch(TableAction(TableActionType.NEXT_PAGE))

    def prev_page(self):
        self.dispatch(TableAction(TableActionType.PREV_PAGE))

    def set_page_size(self, page_size: int):
        self.dispatch(TableAction(TableActionType.SET_PAGE_SIZE, page_size))

    def reset(self):
        self.dispatch(TableAction(TableActionType.RESET))

    # ==================== Queries ====================

    @property
    def search_text(self) -> str:
        return self.state.search_text

    @property
    def sort(self) -> Optional[SortSpec]:
        return self.state.sort

    @property
    def page_index(self) -> int:
        return self.state.page.page_index

    @property
    def page_size(self) -> int:
        return self.state.page.page_size

    @property
    def expanded(self) -> FrozenSet[Hashable]:
        return self.state.expanded

    def is_expanded(self, key: Hashable) -> bool:
        return key in self.state.expanded

    def key_for(self, record: Record, index: int) -> Hashable:
        return row_key(record, index, self.key_field)

    def visible_page(self, records: Sequence[Record]) -> VisiblePage:
        """Pure derivation of the current page; does not change state"""
        return derive_visible_page(records, self.state, self.key_field, self.search_fields)

    def render(self, records: Sequence[Record]) -> VisiblePage:
        """Clamp an out-of-range page index, then derive the page"""
        page = self.visible_page(records)
        if page.needs_clamp:
            self.dispatch(TableAction(TableActionType.CLAMP, page.total_pages))
            page = self.visible_page(records)
        return page
