from dataclasses import dataclass, field
from typing import Optional

from PyQt6 import QtCore, QtGui

from markgrid.annotations import AnnotationEngine
from markgrid.table import TableData

STYLE_ROLES = [
    QtCore.Qt.ItemDataRole.BackgroundRole,
    QtCore.Qt.ItemDataRole.ForegroundRole,
    QtCore.Qt.ItemDataRole.FontRole,
]


@dataclass
class CsvDocument:
    path: str
    delimiter: str
    table: TableData = field(default_factory=TableData)


class CSVTableModel(QtCore.QAbstractTableModel):
    def __init__(
        self,
        document: CsvDocument,
        engine: Optional[AnnotationEngine] = None,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._document = document
        self._engine = engine or AnnotationEngine(document.table)
        self._engine.replace_table(document.table)

    @property
    def engine(self) -> AnnotationEngine:
        return self._engine

    @property
    def table(self) -> TableData:
        return self._engine.table

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return self.table.row_count

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return self.table.column_count

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return None
        row, col = index.row(), index.column()
        if role in (QtCore.Qt.ItemDataRole.DisplayRole, QtCore.Qt.ItemDataRole.EditRole):
            if row >= self.table.row_count or col >= self.table.column_count:
                return ""
            return self.table.get_cell(row, col)
        if role == QtCore.Qt.ItemDataRole.BackgroundRole:
            style = self._engine.cell_style(row, col)
            if style.background:
                return QtGui.QBrush(QtGui.QColor(style.background))
            if style.search_match:
                return QtGui.QBrush(QtGui.QColor(self._engine.highlights.defaults.search))
            return None
        if role == QtCore.Qt.ItemDataRole.ForegroundRole:
            text_color = self._engine.highlights.get_final_text_color(row, col)
            if text_color:
                return QtGui.QBrush(QtGui.QColor(text_color))
            return None
        if role == QtCore.Qt.ItemDataRole.FontRole:
            if self._engine.search_session.is_match(row, col):
                font = QtGui.QFont()
                font.setBold(True)
                return font
        return None

    def setData(self, index: QtCore.QModelIndex, value, role: int = QtCore.Qt.ItemDataRole.EditRole) -> bool:
        if not index.isValid() or role != QtCore.Qt.ItemDataRole.EditRole:
            return False
        if index.row() >= self.table.row_count or index.column() >= self.table.column_count:
            return False
        self._engine.set_cell(index.row(), index.column(), value)
        self.dataChanged.emit(index, index, [role] + STYLE_ROLES)
        return True

    def flags(self, index: QtCore.QModelIndex) -> QtCore.Qt.ItemFlag:
        if not index.isValid():
            return QtCore.Qt.ItemFlag.NoItemFlags
        return (
            QtCore.Qt.ItemFlag.ItemIsSelectable
            | QtCore.Qt.ItemFlag.ItemIsEnabled
            | QtCore.Qt.ItemFlag.ItemIsEditable
        )

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if role != QtCore.Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == QtCore.Qt.Orientation.Horizontal:
            header = self.table.header
            if section < len(header) and header[section]:
                return header[section]
            return f"Column {section + 1}"
        return str(section + 1)

    def setHeaderData(
        self,
        section: int,
        orientation: QtCore.Qt.Orientation,
        value,
        role: int = QtCore.Qt.ItemDataRole.EditRole,
    ) -> bool:
        if orientation != QtCore.Qt.Orientation.Horizontal:
            return False
        if role != QtCore.Qt.ItemDataRole.EditRole:
            return False
        if not self.table.rename_column(section, str(value)):
            return False
        self.headerDataChanged.emit(orientation, section, section)
        return True

    def set_document(self, document: CsvDocument) -> None:
        self.beginResetModel()
        self._document = document
        self._engine.replace_table(document.table)
        self.endResetModel()

    def insertRows(
        self, row: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        if row < 0 or row > self.table.row_count:
            row = self.table.row_count
        self.beginInsertRows(parent, row, row + count - 1)
        for _ in range(count):
            self._engine.insert_row(row)
        self.endInsertRows()
        self.refresh_styles()
        return True

    def removeRows(
        self, row: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        if row < 0 or row >= self.table.row_count:
            return False
        end_row = min(row + count - 1, self.table.row_count - 1)
        self.beginRemoveRows(parent, row, end_row)
        for _ in range(end_row - row + 1):
            self._engine.remove_row(row)
        self.endRemoveRows()
        self.refresh_styles()
        return True

    def insertColumns(
        self, column: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        if column < 0 or column > self.table.column_count:
            column = self.table.column_count
        self.beginInsertColumns(parent, column, column + count - 1)
        for offset in range(count):
            self._engine.insert_column(column + offset, self.table.generate_column_name())
        self.endInsertColumns()
        self.refresh_styles()
        return True

    def removeColumns(
        self, column: int, count: int, parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> bool:
        if parent.isValid() or count <= 0:
            return False
        if column < 0 or column >= self.table.column_count:
            return False
        end_col = min(column + count - 1, self.table.column_count - 1)
        self.beginRemoveColumns(parent, column, end_col)
        for _ in range(end_col - column + 1):
            self._engine.remove_column(column)
        self.endRemoveColumns()
        self.refresh_styles()
        return True

    def move_row(self, from_row: int, to_row: int) -> bool:
        row_count = self.table.row_count
        if not (0 <= from_row < row_count and 0 <= to_row < row_count) or from_row == to_row:
            return False
        # Qt expects the destination as the slot before which the row lands.
        destination = to_row + 1 if to_row > from_row else to_row
        self.beginMoveRows(QtCore.QModelIndex(), from_row, from_row, QtCore.QModelIndex(), destination)
        self._engine.move_row(from_row, to_row)
        self.endMoveRows()
        self.refresh_styles()
        return True

    def apply_rules(self) -> int:
        marked = self._engine.apply_rules()
        self.refresh_styles()
        return marked

    def refresh_styles(self, start_row: int = 0) -> None:
        if self.rowCount() <= 0 or self.columnCount() <= 0:
            return
        row = max(0, min(start_row, self.rowCount() - 1))
        start = self.index(row, 0)
        end = self.index(self.rowCount() - 1, self.columnCount() - 1)
        self.dataChanged.emit(start, end, STYLE_ROLES)
