import logging
from typing import NamedTuple, Optional

from markgrid.automark import AutoMarkManager
from markgrid.highlight import HighlightManager
from markgrid.search import SearchResult, SearchSession
from markgrid.table import TableData

logger = logging.getLogger(__name__)


class CellStyle(NamedTuple):
    background: Optional[str]
    text_color: Optional[str]
    search_match: bool
    source: Optional[str]


class AnnotationEngine:
    """Glue between the table and its three annotation sources.

    The managers never observe the table themselves; every structural edit
    goes through here so highlights are re-indexed, the search session is
    dropped and the auto-marks are rebuilt.
    """

    def __init__(
        self,
        table: Optional[TableData] = None,
        highlights: Optional[HighlightManager] = None,
        automarks: Optional[AutoMarkManager] = None,
    ) -> None:
        self.table = table if table is not None else TableData()
        self.highlights = highlights or HighlightManager()
        self.automarks = automarks or AutoMarkManager()
        self.search_session = SearchSession()
        self.selected_column: Optional[int] = None

    def cell_style(self, row: int, col: int) -> CellStyle:
        background = self.highlights.get_final_highlight_color(row, col)
        source = "highlight" if background is not None else None
        if background is None:
            background = self.automarks.get_auto_mark_color(row, col)
            if background is not None:
                source = "auto_mark"
        return CellStyle(
            background,
            self.highlights.get_final_text_color(row, col),
            self.search_session.is_match(row, col),
            source,
        )

    def apply_rules(self) -> int:
        return self.automarks.apply_rules(self.table, self.selected_column)

    def set_cell(self, row: int, col: int, value: object) -> Optional[str]:
        self.table.set_cell(row, col, value)
        return self.automarks.reapply_cell(self.table, row, col, self.selected_column)

    def _after_structure_change(self) -> None:
        self.search_session.clear()
        self.apply_rules()

    def insert_row(self, index: int) -> int:
        row = self.table.insert_row(index)
        self.highlights.insert_rows(row)
        self._after_structure_change()
        return row

    def remove_row(self, index: int) -> bool:
        if not self.table.remove_row(index):
            return False
        self.highlights.remove_rows(index)
        self._after_structure_change()
        return True

    def insert_column(self, index: int, name: str = "") -> int:
        col = self.table.insert_column(index, name)
        self.highlights.insert_columns(col)
        if self.selected_column is not None and self.selected_column >= col:
            self.selected_column += 1
        self._after_structure_change()
        return col

    def remove_column(self, index: int) -> bool:
        if not self.table.remove_column(index):
            return False
        self.highlights.remove_columns(index)
        if self.selected_column == index:
            self.selected_column = None
        elif self.selected_column is not None and self.selected_column > index:
            self.selected_column -= 1
        self._after_structure_change()
        return True

    def move_row(self, from_row: int, to_row: int) -> bool:
        if not self.table.move_row(from_row, to_row):
            return False
        self.highlights.move_row(from_row, to_row)
        self._after_structure_change()
        return True

    def replace_table(self, table: TableData) -> None:
        self.table = table
        self.highlights.clear_all_highlights()
        self.selected_column = None
        self._after_structure_change()

    def search(
        self,
        query: str,
        case_sensitive: bool = False,
        fuzzy: bool = True,
        use_regex: bool = False,
    ) -> list[SearchResult]:
        results = self.search_session.run(self.table, query, case_sensitive, fuzzy, use_regex)
        logger.debug("Search %r matched %d cell(s)", query, len(results))
        return results

    def clear_search(self) -> None:
        self.search_session.clear()

    def clear_cell(self, row: int, col: int) -> None:
        self.highlights.clear_cell_highlight(row, col)
        self.automarks.clear_cell_auto_mark(row, col)

    def clear_row(self, row: int) -> None:
        self.highlights.clear_row_highlight(row)
        self.automarks.clear_row_auto_mark(row, self.table.column_count)

    def clear_column(self, col: int) -> None:
        self.highlights.clear_column_highlight(col)
        self.automarks.clear_column_auto_mark(col, self.table.row_count)

    def clear_all(self) -> None:
        self.highlights.clear_all_highlights()
        self.automarks.clear_auto_marks()
