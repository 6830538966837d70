import csv
import logging
import os
from typing import Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from markgrid.annotations import AnnotationEngine
from markgrid.config import AppConfig, AutoMarkSettings
from markgrid.highlight import ConflictStrategy, HighlightManager
from markgrid.models import CsvDocument
from markgrid.table import TableData
from markgrid.widgets.automark_dialog import AutoMarkColorDialog, AutoMarkDialog
from markgrid.widgets.editor import EditorWidget
from markgrid.widgets.find_panel import FindPanel
from markgrid.widgets.statistics_dialog import ColumnStatisticsDialog

logger = logging.getLogger(__name__)

CSV_FILTER = "CSV Files (*.csv *.tsv)"


def delimiter_for(path: str) -> str:
    return "\t" if path.lower().endswith(".tsv") else ","


def load_document(path: str, delimiter: str) -> CsvDocument:
    with open(path, "r", encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        rows = list(reader)
    if not rows:
        return CsvDocument(path, delimiter, TableData())
    return CsvDocument(path, delimiter, TableData.from_rows(rows[0], rows[1:]))


def save_document(table: TableData, path: str, delimiter: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, delimiter=delimiter)
        if table.header:
            writer.writerow(table.header)
        writer.writerows(table.rows())


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, config: Optional[AppConfig] = None) -> None:
        super().__init__()
        self.setWindowTitle("MarkGrid")
        self.resize(1200, 720)
        self._settings = QtCore.QSettings("MarkGrid", "MarkGrid")
        self._config = config or AppConfig.default().ensure_dirs()
        self._automark_settings = AutoMarkSettings(self._config).load()
        strategy_name = self._settings.value(
            "conflict_strategy", ConflictStrategy.OVERWRITE.value, type=str
        )
        try:
            self._strategy = ConflictStrategy(strategy_name)
        except ValueError:
            logger.warning("Unknown conflict strategy %r in settings", strategy_name)
            self._strategy = ConflictStrategy.OVERWRITE

        splitter = QtWidgets.QSplitter(self)
        splitter.setOrientation(QtCore.Qt.Orientation.Horizontal)

        self._tabs = QtWidgets.QTabWidget(self)
        self._tabs.setTabsClosable(True)
        self._tabs.setMovable(False)
        self._tabs.tabCloseRequested.connect(self.close_tab)
        self._tabs.currentChanged.connect(self._on_tab_changed)

        self._find_panel = FindPanel(self)

        splitter.addWidget(self._tabs)
        splitter.addWidget(self._find_panel)
        splitter.setStretchFactor(0, 1)

        self.setCentralWidget(splitter)
        self._status_bar = self.statusBar()
        self._status_bar.showMessage("Ready")

        self._open_documents: dict[str, EditorWidget] = {}
        self._root_path = self._settings.value("last_root_path", QtCore.QDir.currentPath(), type=str)
        self._build_actions()

    def _build_actions(self) -> None:
        new_action = QtGui.QAction("New", self)
        new_action.setShortcut(QtGui.QKeySequence.StandardKey.New)
        new_action.triggered.connect(self.new_file)

        open_action = QtGui.QAction("Open File...", self)
        open_action.setShortcut(QtGui.QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_file_dialog)

        save_action = QtGui.QAction("Save", self)
        save_action.setShortcut(QtGui.QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self.save_current)

        save_as_action = QtGui.QAction("Save As...", self)
        save_as_action.setShortcut(QtGui.QKeySequence.StandardKey.SaveAs)
        save_as_action.triggered.connect(self.save_as_current)

        close_action = QtGui.QAction("Close File", self)
        close_action.setShortcut(QtGui.QKeySequence.StandardKey.Close)
        close_action.triggered.connect(self.close_current_tab)

        find_action = QtGui.QAction("Find...", self)
        find_action.setShortcut(QtGui.QKeySequence.StandardKey.Find)
        find_action.triggered.connect(self.open_find_panel)

        find_next_action = QtGui.QAction("Find Next", self)
        find_next_action.setShortcut(QtGui.QKeySequence.StandardKey.FindNext)
        find_next_action.triggered.connect(lambda: self._apply_to_current("find_next"))

        find_prev_action = QtGui.QAction("Find Previous", self)
        find_prev_action.setShortcut(QtGui.QKeySequence.StandardKey.FindPrevious)
        find_prev_action.triggered.connect(lambda: self._apply_to_current("find_previous"))

        file_menu = self.menuBar().addMenu("File")
        file_menu.addAction(new_action)
        file_menu.addAction(open_action)
        file_menu.addSeparator()
        file_menu.addAction(save_action)
        file_menu.addAction(save_as_action)
        file_menu.addSeparator()
        file_menu.addAction(close_action)

        edit_menu = self.menuBar().addMenu("Edit")
        edit_menu.addAction(find_action)
        edit_menu.addAction(find_next_action)
        edit_menu.addAction(find_prev_action)
        edit_menu.addSeparator()
        for label, method_name in (
            ("Insert Row Above", "insert_row_above"),
            ("Insert Row Below", "insert_row_below"),
            ("Delete Row(s)", "delete_rows"),
            ("Move Row Up", "move_row_up"),
            ("Move Row Down", "move_row_down"),
            (None, None),
            ("Insert Column Left", "insert_col_left"),
            ("Insert Column Right", "insert_col_right"),
            ("Delete Column(s)", "delete_cols"),
        ):
            if label is None:
                edit_menu.addSeparator()
                continue
            action = edit_menu.addAction(label)
            action.triggered.connect(lambda _=False, name=method_name: self._apply_to_current(name))

        highlight_menu = self.menuBar().addMenu("Highlight")
        for label, method_name in (
            ("Highlight Cell...", "highlight_cell"),
            ("Highlight Row...", "highlight_rows"),
            ("Highlight Column...", "highlight_cols"),
            ("Text Color...", "set_text_color"),
            (None, None),
            ("Clear Cell Highlight", "clear_cell_highlight"),
            ("Clear Row Highlight", "clear_row_highlight"),
            ("Clear Column Highlight", "clear_col_highlight"),
            ("Clear All Highlights", "clear_all_highlights"),
        ):
            if label is None:
                highlight_menu.addSeparator()
                continue
            action = highlight_menu.addAction(label)
            action.triggered.connect(lambda _=False, name=method_name: self._apply_to_current(name))
        highlight_menu.addSeparator()
        strategy_menu = highlight_menu.addMenu("Row/Column Conflict")
        overwrite_action = QtGui.QAction("Newest Wins", self)
        overwrite_action.setCheckable(True)
        random_action = QtGui.QAction("Random", self)
        random_action.setCheckable(True)
        strategy_group = QtGui.QActionGroup(self)
        strategy_group.setExclusive(True)
        strategy_group.addAction(overwrite_action)
        strategy_group.addAction(random_action)
        overwrite_action.triggered.connect(lambda: self._set_strategy(ConflictStrategy.OVERWRITE))
        random_action.triggered.connect(lambda: self._set_strategy(ConflictStrategy.RANDOM))
        if self._strategy is ConflictStrategy.RANDOM:
            random_action.setChecked(True)
        else:
            overwrite_action.setChecked(True)
        strategy_menu.addAction(overwrite_action)
        strategy_menu.addAction(random_action)

        tools_menu = self.menuBar().addMenu("Tools")
        automark_action = QtGui.QAction("Auto Mark...", self)
        automark_action.setShortcut(QtGui.QKeySequence("Ctrl+M"))
        automark_action.triggered.connect(self.open_automark_dialog)
        reapply_action = QtGui.QAction("Re-apply Auto Mark Rules", self)
        reapply_action.triggered.connect(self.reapply_rules)
        colors_action = QtGui.QAction("Auto Mark Colors...", self)
        colors_action.triggered.connect(self.open_automark_colors)
        clear_marks_action = QtGui.QAction("Clear All Auto Marks", self)
        clear_marks_action.triggered.connect(lambda: self._apply_to_current("clear_auto_marks"))
        stats_action = QtGui.QAction("Column Statistics...", self)
        stats_action.triggered.connect(self.open_column_statistics)
        tools_menu.addAction(automark_action)
        tools_menu.addAction(reapply_action)
        tools_menu.addAction(clear_marks_action)
        tools_menu.addAction(colors_action)
        tools_menu.addSeparator()
        tools_menu.addAction(stats_action)

        # Ensure shortcuts work even when focus is in the table widget.
        for action in (
            new_action,
            open_action,
            save_action,
            save_as_action,
            close_action,
            find_action,
            find_next_action,
            find_prev_action,
            automark_action,
        ):
            action.setShortcutVisibleInContextMenu(True)
            action.setShortcutContext(QtCore.Qt.ShortcutContext.ApplicationShortcut)
            self.addAction(action)

    def _set_strategy(self, strategy: ConflictStrategy) -> None:
        if strategy is self._strategy:
            return
        self._strategy = strategy
        self._settings.setValue("conflict_strategy", strategy.value)
        for editor in self._open_documents.values():
            editor.engine.highlights.conflict_strategy = strategy
            editor.model.refresh_styles()
        logger.debug("Conflict strategy set to %s", strategy.value)

    def _apply_to_current(self, method_name: str) -> None:
        editor = self._current_editor()
        if editor and hasattr(editor, method_name):
            getattr(editor, method_name)()

    def _current_editor(self) -> Optional[EditorWidget]:
        widget = self._tabs.currentWidget()
        if isinstance(widget, EditorWidget):
            return widget
        return None

    def _create_editor(self, document: CsvDocument) -> EditorWidget:
        engine = AnnotationEngine(document.table, HighlightManager(self._strategy))
        editor = EditorWidget(document, engine, self)
        editor.document_changed.connect(self._on_document_changed)
        editor.cell_selected.connect(lambda *_, ed=editor: self._update_status(ed))
        self._open_documents[document.path] = editor
        return editor

    def open_file(self, path: str) -> None:
        if path in self._open_documents:
            self._show_tab(self._open_documents[path])
            return

        try:
            document = load_document(path, delimiter_for(path))
        except (OSError, ValueError) as exc:
            logger.warning("Could not open %s: %s", path, exc)
            QtWidgets.QMessageBox.warning(self, "Open failed", str(exc))
            return

        editor = self._create_editor(document)
        self._show_tab(editor)
        self._root_path = os.path.dirname(path)
        self._settings.setValue("last_root_path", self._root_path)

    def new_file(self) -> None:
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self,
            "New CSV File",
            self._root_path,
            CSV_FILTER,
        )
        if not path:
            return
        if not path.lower().endswith((".csv", ".tsv")):
            path += ".csv"
        document = CsvDocument(path, delimiter_for(path), TableData(rows=1, columns=1))
        editor = self._create_editor(document)
        self._show_tab(editor)
        self.save_current()

    def open_file_dialog(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self,
            "Open CSV File",
            self._root_path,
            CSV_FILTER,
        )
        if path:
            self.open_file(path)

    def open_find_panel(self) -> None:
        self._find_panel.show()
        self._find_panel.focus_input()

    def open_automark_dialog(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        engine = editor.engine
        dialog = AutoMarkDialog(
            engine.automarks.rules(), self._automark_settings, engine.table.header, self
        )
        dialog.clear_marks_requested.connect(editor.clear_auto_marks)
        if dialog.exec() != QtWidgets.QDialog.DialogCode.Accepted:
            return
        engine.automarks.set_rules(dialog.rules())
        self.reapply_rules()

    def open_automark_colors(self) -> None:
        AutoMarkColorDialog(self._automark_settings, self).exec()

    def open_column_statistics(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        if editor.engine.table.column_count == 0:
            self._status_bar.showMessage("No columns to summarize")
            return
        ColumnStatisticsDialog(editor.engine.table, editor.current_column(), self).exec()

    def reapply_rules(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        try:
            marked = editor.apply_rules()
        except RuntimeError as exc:
            QtWidgets.QMessageBox.warning(self, "Auto Mark", str(exc))
            return
        self._status_bar.showMessage(f"Auto mark: {marked} cell(s) marked")

    def save_current(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        self._save_editor(editor, editor.document.path, update_path=False)

    def save_as_current(self) -> None:
        editor = self._current_editor()
        if not editor:
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self,
            "Save CSV As",
            editor.document.path,
            CSV_FILTER,
        )
        if path:
            self._save_editor(editor, path, update_path=True)

    def close_current_tab(self) -> None:
        index = self._tabs.currentIndex()
        if index >= 0:
            self.close_tab(index)

    def close_tab(self, index: int) -> None:
        widget = self._tabs.widget(index)
        if not isinstance(widget, EditorWidget):
            return
        editor = widget
        if editor.is_dirty():
            if not self._confirm_discard(editor):
                return
        self._open_documents.pop(editor.document.path, None)
        self._tabs.removeTab(index)
        editor.deleteLater()
        if self._tabs.count() == 0:
            self._update_window_title(None)

    def _on_document_changed(self, path: str) -> None:
        editor = self._open_documents.get(path)
        if editor:
            self._update_status(editor)
            self._update_window_title(editor)

    def _update_status(self, editor: EditorWidget) -> None:
        table = editor.engine.table
        highlights = editor.engine.highlights
        marks = len(editor.engine.automarks.marks())
        self._status_bar.showMessage(
            f"Rows: {table.row_count} | Cols: {table.column_count} | "
            f"Highlights: {len(highlights.cell_highlights())} cell, "
            f"{len(highlights.row_highlights())} row, {len(highlights.column_highlights())} col | "
            f"Auto marks: {marks}"
        )

    def _update_window_title(self, editor: Optional[EditorWidget]) -> None:
        if not editor:
            self.setWindowTitle("MarkGrid")
            return
        name = os.path.basename(editor.document.path)
        if editor.is_dirty():
            name = f"*{name}"
        self.setWindowTitle(f"{name} - MarkGrid")
        self._update_tab_label(editor)

    def _update_tab_label(self, editor: EditorWidget) -> None:
        index = self._tab_index_for_editor(editor)
        if index == -1:
            return
        label = os.path.basename(editor.document.path)
        if editor.is_dirty():
            label = f"*{label}"
        self._tabs.setTabText(index, label)

    def _tab_index_for_editor(self, editor: EditorWidget) -> int:
        for idx in range(self._tabs.count()):
            if self._tabs.widget(idx) is editor:
                return idx
        return -1

    def _show_tab(self, editor: EditorWidget) -> None:
        index = self._tab_index_for_editor(editor)
        if index == -1:
            index = self._tabs.addTab(editor, os.path.basename(editor.document.path))
        self._tabs.setCurrentIndex(index)
        self._activate_editor(editor)

    def _on_tab_changed(self, index: int) -> None:
        widget = self._tabs.widget(index)
        if not isinstance(widget, EditorWidget):
            self._update_window_title(None)
            return
        self._activate_editor(widget)

    def _activate_editor(self, editor: EditorWidget) -> None:
        self._update_status(editor)
        self._update_window_title(editor)

    def _confirm_discard(self, editor: EditorWidget) -> bool:
        result = QtWidgets.QMessageBox.question(
            self,
            "Unsaved Changes",
            f"Save changes to {os.path.basename(editor.document.path)}?",
            QtWidgets.QMessageBox.StandardButton.Save
            | QtWidgets.QMessageBox.StandardButton.Discard
            | QtWidgets.QMessageBox.StandardButton.Cancel,
        )
        if result == QtWidgets.QMessageBox.StandardButton.Save:
            return self._save_editor(editor, editor.document.path, update_path=False)
        if result == QtWidgets.QMessageBox.StandardButton.Discard:
            return True
        return False

    def _save_editor(self, editor: EditorWidget, path: str, update_path: bool) -> bool:
        doc = editor.document
        delimiter = delimiter_for(path)
        if not path.lower().endswith((".csv", ".tsv")):
            path += ".csv"
            delimiter = ","
        try:
            save_document(editor.engine.table, path, delimiter)
        except OSError as exc:
            logger.warning("Could not save %s: %s", path, exc)
            QtWidgets.QMessageBox.warning(self, "Save failed", str(exc))
            return False
        if update_path:
            old_path = doc.path
            doc.path = path
            doc.delimiter = delimiter
            self._open_documents.pop(old_path, None)
            self._open_documents[path] = editor
        editor.set_dirty(False)
        self._update_window_title(editor)
        self._status_bar.showMessage(f"Saved: {os.path.basename(path)}")
        return True

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        for editor in list(self._open_documents.values()):
            if editor.is_dirty():
                if not self._confirm_discard(editor):
                    event.ignore()
                    return
        event.accept()
