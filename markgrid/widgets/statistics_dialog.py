from typing import Optional

from PyQt6 import QtGui, QtWidgets

from markgrid.column_stats import column_statistics, format_report
from markgrid.table import TableData


class ColumnStatisticsDialog(QtWidgets.QDialog):
    def __init__(
        self,
        table: TableData,
        column: Optional[int] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._table = table
        self.setWindowTitle("Column Statistics")
        self.resize(620, 480)

        layout = QtWidgets.QVBoxLayout(self)
        top_row = QtWidgets.QHBoxLayout()
        self._column_combo = QtWidgets.QComboBox(self)
        for col, name in enumerate(table.header):
            label = f"{col + 1}: {name}" if name else f"{col + 1}"
            self._column_combo.addItem(label, col)
        self._calculate_btn = QtWidgets.QPushButton("Calculate", self)
        top_row.addWidget(QtWidgets.QLabel("Column:", self))
        top_row.addWidget(self._column_combo, 1)
        top_row.addWidget(self._calculate_btn)
        layout.addLayout(top_row)

        self._report = QtWidgets.QPlainTextEdit(self)
        self._report.setReadOnly(True)
        self._report.setFont(QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.SystemFont.FixedFont))
        self._report.setPlaceholderText("Pick a column and press Calculate.")
        layout.addWidget(self._report, 1)

        button_row = QtWidgets.QHBoxLayout()
        self._copy_btn = QtWidgets.QPushButton("Copy", self)
        close_btn = QtWidgets.QPushButton("Close", self)
        button_row.addStretch(1)
        button_row.addWidget(self._copy_btn)
        button_row.addWidget(close_btn)
        layout.addLayout(button_row)

        self._calculate_btn.clicked.connect(self.calculate)
        self._copy_btn.clicked.connect(self._copy_report)
        close_btn.clicked.connect(self.accept)
        self._calculate_btn.setEnabled(table.column_count > 0)

        if column is not None and 0 <= column < table.column_count:
            self._column_combo.setCurrentIndex(column)
            self.calculate()

    def report_text(self) -> str:
        return self._report.toPlainText()

    def calculate(self) -> None:
        col = self._column_combo.currentData()
        if col is None:
            return
        stats = column_statistics(self._table, col)
        self._report.setPlainText(format_report(stats, self._table.header[col]))

    def _copy_report(self) -> None:
        text = self.report_text()
        if text:
            QtWidgets.QApplication.clipboard().setText(text)
