from typing import Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from markgrid.annotations import AnnotationEngine
from markgrid.models import STYLE_ROLES, CsvDocument, CSVTableModel
from markgrid.search import SearchResult


def _role_value(role: object) -> object:
    return getattr(role, "value", role)


STYLE_ROLE_VALUES = {_role_value(role) for role in STYLE_ROLES}


class EditorWidget(QtWidgets.QWidget):
    document_changed = QtCore.pyqtSignal(str)
    cell_selected = QtCore.pyqtSignal(int, int, str)

    def __init__(
        self,
        document: CsvDocument,
        engine: AnnotationEngine,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._document = document
        self._dirty = False

        self._table_view = QtWidgets.QTableView(self)
        self._table_view.setAlternatingRowColors(True)
        self._table_view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectionBehavior.SelectItems)
        self._table_view.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.ExtendedSelection)
        self._table_view.setContextMenuPolicy(QtCore.Qt.ContextMenuPolicy.CustomContextMenu)
        self._table_view.customContextMenuRequested.connect(self._show_context_menu)
        self._table_view.verticalHeader().setContextMenuPolicy(
            QtCore.Qt.ContextMenuPolicy.CustomContextMenu
        )
        self._table_view.horizontalHeader().setContextMenuPolicy(
            QtCore.Qt.ContextMenuPolicy.CustomContextMenu
        )
        self._table_view.verticalHeader().customContextMenuRequested.connect(
            self._show_row_header_menu
        )
        self._table_view.horizontalHeader().customContextMenuRequested.connect(
            self._show_col_header_menu
        )
        self._table_view.horizontalHeader().sectionDoubleClicked.connect(self._rename_column_at)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._table_view)

        self._model = CSVTableModel(self._document, engine, self)
        self._table_view.setModel(self._model)
        self._table_view.selectionModel().currentChanged.connect(self._on_current_cell_changed)

        self._model.dataChanged.connect(self._on_model_changed)
        self._model.rowsInserted.connect(lambda *_: self._on_model_changed())
        self._model.rowsRemoved.connect(lambda *_: self._on_model_changed())
        self._model.rowsMoved.connect(lambda *_: self._on_model_changed())
        self._model.columnsInserted.connect(lambda *_: self._on_model_changed())
        self._model.columnsRemoved.connect(lambda *_: self._on_model_changed())
        self._model.headerDataChanged.connect(lambda *_: self._on_model_changed())

    @property
    def document(self) -> CsvDocument:
        return self._document

    @property
    def engine(self) -> AnnotationEngine:
        return self._model.engine

    @property
    def model(self) -> CSVTableModel:
        return self._model

    def is_dirty(self) -> bool:
        return self._dirty

    def set_dirty(self, dirty: bool) -> None:
        self._dirty = dirty
        self.document_changed.emit(self._document.path)

    def set_document(self, document: CsvDocument) -> None:
        self._document = document
        self._model.set_document(document)
        self._dirty = False

    def _on_model_changed(self, *args: object) -> None:
        roles = args[2] if len(args) > 2 else None
        if roles and all(_role_value(role) in STYLE_ROLE_VALUES for role in roles):
            return
        self._dirty = True
        self.document_changed.emit(self._document.path)
        current = self._table_view.selectionModel().currentIndex()
        if current.isValid():
            self._emit_cell_selected(current.row(), current.column())

    def _on_current_cell_changed(
        self, current: QtCore.QModelIndex, _: QtCore.QModelIndex
    ) -> None:
        if current.isValid():
            self._emit_cell_selected(current.row(), current.column())

    def _emit_cell_selected(self, row: int, col: int) -> None:
        self.cell_selected.emit(row, col, self._cell_text(row, col))

    def _cell_text(self, row: int, col: int) -> str:
        value = self._model.data(self._model.index(row, col), QtCore.Qt.ItemDataRole.DisplayRole)
        return "" if value is None else str(value)

    def _current_cell(self) -> Optional[QtCore.QModelIndex]:
        current = self._table_view.selectionModel().currentIndex()
        return current if current.isValid() else None

    def _selected_rows(self) -> list[int]:
        selection = self._table_view.selectionModel().selectedIndexes()
        return sorted({idx.row() for idx in selection})

    def _selected_cols(self) -> list[int]:
        selection = self._table_view.selectionModel().selectedIndexes()
        return sorted({idx.column() for idx in selection})

    def insert_row_above(self) -> None:
        row = min(self._selected_rows(), default=self._model.rowCount())
        self._model.insertRows(row, 1)

    def insert_row_below(self) -> None:
        rows = self._selected_rows()
        row = rows[-1] + 1 if rows else self._model.rowCount()
        self._model.insertRows(row, 1)

    def delete_rows(self) -> None:
        for row in reversed(self._selected_rows()):
            self._model.removeRows(row, 1)

    def insert_col_left(self) -> None:
        col = min(self._selected_cols(), default=self._model.columnCount())
        self._model.insertColumns(col, 1)

    def insert_col_right(self) -> None:
        cols = self._selected_cols()
        col = cols[-1] + 1 if cols else self._model.columnCount()
        self._model.insertColumns(col, 1)

    def delete_cols(self) -> None:
        for col in reversed(self._selected_cols()):
            self._model.removeColumns(col, 1)

    def move_row_up(self) -> None:
        current = self._current_cell()
        if current is None:
            return
        self._move_row(current.row(), current.row() - 1, current.column())

    def move_row_down(self) -> None:
        current = self._current_cell()
        if current is None:
            return
        self._move_row(current.row(), current.row() + 1, current.column())

    def _move_row(self, from_row: int, to_row: int, col: int) -> None:
        if self._model.move_row(from_row, to_row):
            self.select_cell(to_row, max(col, 0))

    def _pick_color(self, title: str, initial: str) -> Optional[str]:
        color = QtWidgets.QColorDialog.getColor(QtGui.QColor(initial), self, title)
        if not color.isValid():
            return None
        return color.name()

    def highlight_cell(self) -> None:
        current = self._current_cell()
        if current is None:
            return
        highlights = self.engine.highlights
        color = self._pick_color("Cell Highlight", highlights.defaults.cell)
        if color is None:
            return
        targets = self._table_view.selectionModel().selectedIndexes() or [current]
        for index in targets:
            existing = highlights.get_cell_highlight(index.row(), index.column())
            text_color = existing.text_color if existing else None
            highlights.set_cell_highlight(index.row(), index.column(), color, text_color)
        self._model.refresh_styles()

    def highlight_rows(self) -> None:
        rows = self._selected_rows()
        if not rows:
            return
        highlights = self.engine.highlights
        color = self._pick_color("Row Highlight", highlights.defaults.row)
        if color is None:
            return
        for row in rows:
            existing = highlights.get_row_highlight(row)
            highlights.set_row_highlight(row, color, existing.text_color if existing else None)
        self._model.refresh_styles()

    def highlight_cols(self) -> None:
        cols = self._selected_cols()
        if not cols:
            return
        highlights = self.engine.highlights
        color = self._pick_color("Column Highlight", highlights.defaults.column)
        if color is None:
            return
        for col in cols:
            existing = highlights.get_column_highlight(col)
            highlights.set_column_highlight(col, color, existing.text_color if existing else None)
        self._model.refresh_styles()

    def set_text_color(self) -> None:
        current = self._current_cell()
        if current is None:
            return
        highlights = self.engine.highlights
        color = self._pick_color("Text Color", highlights.defaults.text)
        if color is None:
            return
        targets = self._table_view.selectionModel().selectedIndexes() or [current]
        for index in targets:
            existing = highlights.get_cell_highlight(index.row(), index.column())
            background = existing.background if existing else None
            highlights.set_cell_highlight(index.row(), index.column(), background, color)
        self._model.refresh_styles()

    def clear_cell_highlight(self) -> None:
        current = self._current_cell()
        if current is None:
            return
        targets = self._table_view.selectionModel().selectedIndexes() or [current]
        for index in targets:
            self.engine.clear_cell(index.row(), index.column())
        self._model.refresh_styles()

    def clear_cell_text_color(self) -> None:
        targets = self._table_view.selectionModel().selectedIndexes()
        for index in targets:
            self.engine.highlights.clear_cell_text_color(index.row(), index.column())
        self._model.refresh_styles()

    def clear_row_highlight(self) -> None:
        for row in self._selected_rows():
            self.engine.clear_row(row)
        self._model.refresh_styles()

    def clear_col_highlight(self) -> None:
        for col in self._selected_cols():
            self.engine.clear_column(col)
        self._model.refresh_styles()

    def clear_all_highlights(self) -> None:
        self.engine.clear_all()
        self._model.refresh_styles()

    def current_column(self) -> Optional[int]:
        current = self._current_cell()
        return current.column() if current is not None else None

    def clear_auto_marks(self) -> None:
        self.engine.automarks.clear_auto_marks()
        self._model.refresh_styles()

    def apply_rules(self) -> int:
        self.engine.selected_column = self.current_column()
        return self._model.apply_rules()

    def _show_context_menu(self, position: QtCore.QPoint) -> None:
        menu = QtWidgets.QMenu(self)

        highlight_cell = menu.addAction("Highlight Cell...")
        highlight_row = menu.addAction("Highlight Row...")
        highlight_col = menu.addAction("Highlight Column...")
        text_color = menu.addAction("Text Color...")
        menu.addSeparator()
        clear_cell = menu.addAction("Clear Cell Highlight")
        clear_text = menu.addAction("Clear Cell Text Color")
        clear_row = menu.addAction("Clear Row Highlight")
        clear_col = menu.addAction("Clear Column Highlight")
        clear_all = menu.addAction("Clear All Highlights")
        menu.addSeparator()
        insert_row_above = menu.addAction("Insert Row Above")
        insert_row_below = menu.addAction("Insert Row Below")
        delete_rows = menu.addAction("Delete Row(s)")
        move_up = menu.addAction("Move Row Up")
        move_down = menu.addAction("Move Row Down")
        menu.addSeparator()
        insert_col_left = menu.addAction("Insert Column Left")
        insert_col_right = menu.addAction("Insert Column Right")
        delete_cols = menu.addAction("Delete Column(s)")

        highlight_cell.triggered.connect(self.highlight_cell)
        highlight_row.triggered.connect(self.highlight_rows)
        highlight_col.triggered.connect(self.highlight_cols)
        text_color.triggered.connect(self.set_text_color)
        clear_cell.triggered.connect(self.clear_cell_highlight)
        clear_text.triggered.connect(self.clear_cell_text_color)
        clear_row.triggered.connect(self.clear_row_highlight)
        clear_col.triggered.connect(self.clear_col_highlight)
        clear_all.triggered.connect(self.clear_all_highlights)
        insert_row_above.triggered.connect(self.insert_row_above)
        insert_row_below.triggered.connect(self.insert_row_below)
        delete_rows.triggered.connect(self.delete_rows)
        move_up.triggered.connect(self.move_row_up)
        move_down.triggered.connect(self.move_row_down)
        insert_col_left.triggered.connect(self.insert_col_left)
        insert_col_right.triggered.connect(self.insert_col_right)
        delete_cols.triggered.connect(self.delete_cols)

        has_selection = bool(self._table_view.selectionModel().selectedIndexes())
        for action in (
            highlight_cell,
            highlight_row,
            highlight_col,
            text_color,
            clear_cell,
            clear_text,
            clear_row,
            clear_col,
            delete_rows,
            delete_cols,
        ):
            action.setEnabled(has_selection)
        clear_all.setEnabled(self.engine.highlights.has_highlights() or bool(self.engine.automarks.marks()))
        current = self._current_cell()
        move_up.setEnabled(current is not None and current.row() > 0)
        move_down.setEnabled(current is not None and current.row() < self._model.rowCount() - 1)

        menu.exec(self._table_view.viewport().mapToGlobal(position))

    def _show_row_header_menu(self, position: QtCore.QPoint) -> None:
        row = self._table_view.verticalHeader().logicalIndexAt(position)
        menu = QtWidgets.QMenu(self)
        insert_above = menu.addAction("Insert Row Above")
        insert_below = menu.addAction("Insert Row Below")
        move_up = menu.addAction("Move Row Up")
        move_down = menu.addAction("Move Row Down")
        delete_row = menu.addAction("Delete Row")
        insert_above.triggered.connect(lambda: self._model.insertRows(row, 1))
        insert_below.triggered.connect(lambda: self._model.insertRows(row + 1 if row >= 0 else -1, 1))
        move_up.triggered.connect(lambda: self._move_row(row, row - 1, 0))
        move_down.triggered.connect(lambda: self._move_row(row, row + 1, 0))
        delete_row.triggered.connect(lambda: self._model.removeRows(row, 1))
        move_up.setEnabled(row > 0)
        move_down.setEnabled(0 <= row < self._model.rowCount() - 1)
        delete_row.setEnabled(row >= 0)
        menu.exec(self._table_view.verticalHeader().mapToGlobal(position))

    def _show_col_header_menu(self, position: QtCore.QPoint) -> None:
        col = self._table_view.horizontalHeader().logicalIndexAt(position)
        menu = QtWidgets.QMenu(self)
        insert_left = menu.addAction("Insert Column Left")
        insert_right = menu.addAction("Insert Column Right")
        rename_col = menu.addAction("Rename Column")
        delete_col = menu.addAction("Delete Column")
        insert_left.triggered.connect(lambda: self._model.insertColumns(col, 1))
        insert_right.triggered.connect(lambda: self._model.insertColumns(col + 1 if col >= 0 else -1, 1))
        rename_col.triggered.connect(lambda: self._rename_column_at(col))
        delete_col.triggered.connect(lambda: self._model.removeColumns(col, 1))
        rename_col.setEnabled(col >= 0)
        delete_col.setEnabled(col >= 0)
        menu.exec(self._table_view.horizontalHeader().mapToGlobal(position))

    def _rename_column_at(self, col: int) -> None:
        header = self._model.table.header
        if col < 0 or col >= len(header):
            return
        new_name, ok = QtWidgets.QInputDialog.getText(
            self, "Rename Column", "Column name:", text=header[col]
        )
        if ok:
            self._model.setHeaderData(col, QtCore.Qt.Orientation.Horizontal, new_name)

    def select_cell(self, row: int, col: int) -> None:
        index = self._model.index(row, col)
        if not index.isValid():
            return
        selection = self._table_view.selectionModel()
        selection.clearSelection()
        selection.setCurrentIndex(
            index, QtCore.QItemSelectionModel.SelectionFlag.ClearAndSelect
        )
        self._table_view.scrollTo(index)

    def find_all(
        self, query: str, case_sensitive: bool, fuzzy: bool, use_regex: bool
    ) -> list[SearchResult]:
        results = self.engine.search(query, case_sensitive, fuzzy, use_regex)
        self._model.refresh_styles()
        return results

    def find_next(self) -> Optional[SearchResult]:
        result = self.engine.search_session.next()
        if result is not None:
            self.select_cell(result.row, result.column)
        return result

    def find_previous(self) -> Optional[SearchResult]:
        result = self.engine.search_session.previous()
        if result is not None:
            self.select_cell(result.row, result.column)
        return result

    def clear_search(self) -> None:
        self.engine.clear_search()
        self._model.refresh_styles()
