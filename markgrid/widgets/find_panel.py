from typing import Optional, TYPE_CHECKING

from PyQt6 import QtCore, QtWidgets

from markgrid.search import InvalidPattern, SearchResult
from markgrid.widgets.editor import EditorWidget

if TYPE_CHECKING:
    from markgrid.windows.main_window import MainWindow


class FindPanel(QtWidgets.QWidget):
    def __init__(self, parent: "MainWindow") -> None:
        super().__init__(parent)
        self._main_window = parent
        layout = QtWidgets.QVBoxLayout(self)
        form = QtWidgets.QGridLayout()

        self._find_input = QtWidgets.QLineEdit(self)
        self._find_input.setPlaceholderText("Separate terms with , or ;")
        self._case_check = QtWidgets.QCheckBox("Case sensitive", self)
        self._fuzzy_check = QtWidgets.QCheckBox("Fuzzy match", self)
        self._fuzzy_check.setChecked(True)
        self._regex_check = QtWidgets.QCheckBox("Regular expression", self)
        find_label = QtWidgets.QLabel("Find:", self)

        self._find_all_btn = QtWidgets.QPushButton("Find All", self)
        self._find_next_btn = QtWidgets.QPushButton("Next", self)
        self._find_prev_btn = QtWidgets.QPushButton("Previous", self)
        self._clear_btn = QtWidgets.QPushButton("Clear", self)

        form.addWidget(find_label, 0, 0)
        form.addWidget(self._find_input, 0, 1, 1, 3)
        form.addWidget(self._case_check, 1, 1)
        form.addWidget(self._fuzzy_check, 1, 2)
        form.addWidget(self._regex_check, 1, 3)
        form.addWidget(self._find_all_btn, 2, 0)
        form.addWidget(self._find_next_btn, 2, 1)
        form.addWidget(self._find_prev_btn, 2, 2)
        form.addWidget(self._clear_btn, 2, 3)

        self._status = QtWidgets.QLabel("", self)
        self._results = QtWidgets.QListWidget(self)
        self._results.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.SingleSelection)

        layout.addLayout(form)
        layout.addWidget(self._status)
        layout.addWidget(self._results)

        self._find_input.returnPressed.connect(self._on_find_all)
        self._find_all_btn.clicked.connect(self._on_find_all)
        self._find_next_btn.clicked.connect(self._on_find_next)
        self._find_prev_btn.clicked.connect(self._on_find_previous)
        self._clear_btn.clicked.connect(self._on_clear)
        self._regex_check.toggled.connect(self._fuzzy_check.setDisabled)
        self._results.itemDoubleClicked.connect(self._on_result_activated)

    def focus_input(self) -> None:
        self._find_input.setFocus()
        self._find_input.selectAll()

    def _current_editor(self) -> Optional[EditorWidget]:
        return self._main_window._current_editor()

    def _on_find_all(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        self._results.clear()
        try:
            matches = editor.find_all(
                self._find_input.text(),
                self._case_check.isChecked(),
                self._fuzzy_check.isChecked(),
                self._regex_check.isChecked(),
            )
        except InvalidPattern as exc:
            QtWidgets.QMessageBox.warning(self, "Find", str(exc))
            self._status.setText("")
            return
        self._fill_results(matches)
        if not matches:
            self._status.setText("No matches found.")
            return
        self._status.setText(f"{len(matches)} match(es)")
        self._select_result(editor.find_next())

    def _on_find_next(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        if not editor.engine.search_session:
            self._on_find_all()
            return
        self._select_result(editor.find_next())

    def _on_find_previous(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        if not editor.engine.search_session:
            self._on_find_all()
            return
        self._select_result(editor.find_previous())

    def _on_clear(self) -> None:
        editor = self._current_editor()
        if editor:
            editor.clear_search()
        self._results.clear()
        self._status.setText("")

    def _fill_results(self, matches: list[SearchResult]) -> None:
        for row, col, value in matches:
            preview = " ".join(value.split())
            preview = self._ellipsize(preview, 40)
            item = QtWidgets.QListWidgetItem(f"Row {row + 1}, Col {col + 1}: {preview}")
            item.setData(QtCore.Qt.ItemDataRole.UserRole, (row, col))
            self._results.addItem(item)

    def _select_result(self, result: Optional[SearchResult]) -> None:
        editor = self._current_editor()
        if result is None or editor is None:
            return
        session = editor.engine.search_session
        index = session.current_index
        self._status.setText(f"{index + 1} / {len(session)}")
        if 0 <= index < self._results.count():
            self._results.setCurrentRow(index)

    def _on_result_activated(self, item: QtWidgets.QListWidgetItem) -> None:
        editor = self._current_editor()
        if not editor:
            return
        data = item.data(QtCore.Qt.ItemDataRole.UserRole)
        if isinstance(data, tuple) and len(data) == 2:
            row, col = data
            editor.select_cell(row, col)

    def _ellipsize(self, text: str, limit: int) -> str:
        if len(text) <= limit:
            return text
        return f"{text[:limit - 1]}…"
