from typing import Optional

from PyQt6 import QtCore, QtGui, QtWidgets

from markgrid.config import AutoMarkSettings
from markgrid.rules import (
    PARAMETER_TYPES,
    RULE_LABELS,
    ApplyScope,
    AutoMarkRule,
    RuleCategory,
    RuleType,
    category_of,
)

SCOPE_LABELS = {
    ApplyScope.ALL_COLUMNS: "All columns",
    ApplyScope.SELECTED_COLUMN: "Selected column",
    ApplyScope.SPECIFIED_COLUMNS: "Specified columns",
}

CATEGORY_LABELS = {
    RuleCategory.NUMBER: "Number rules",
    RuleCategory.STRING: "String rules",
    RuleCategory.FORMAT: "Format checks",
    RuleCategory.EMPTY: "Empty values",
}


def parse_columns(text: str) -> tuple[int, ...]:
    """Parse a 1-based column list such as ``1, 3-5`` into 0-based indices."""
    columns: list[int] = []
    for part in text.replace(";", ",").split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, _, end = part.partition("-")
            first, last = int(start), int(end)
            if first < 1 or last < first:
                raise ValueError(f"Invalid column range: {part}")
            columns.extend(range(first - 1, last))
        else:
            value = int(part)
            if value < 1:
                raise ValueError(f"Invalid column: {part}")
            columns.append(value - 1)
    return tuple(sorted(set(columns)))


class AutoMarkColorDialog(QtWidgets.QDialog):
    """Default mark color per rule category, saved with the rule templates."""

    def __init__(
        self, settings: AutoMarkSettings, parent: Optional[QtWidgets.QWidget] = None
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._colors: dict[RuleCategory, str] = dict(settings.category_colors)
        self._buttons: dict[RuleCategory, QtWidgets.QPushButton] = {}
        self.setWindowTitle("Auto Mark Colors")

        layout = QtWidgets.QVBoxLayout(self)
        form = QtWidgets.QGridLayout()
        for row, (category, label) in enumerate(CATEGORY_LABELS.items()):
            button = QtWidgets.QPushButton(self)
            button.clicked.connect(lambda _=False, cat=category: self._choose(cat))
            self._buttons[category] = button
            form.addWidget(QtWidgets.QLabel(f"{label}:", self), row, 0)
            form.addWidget(button, row, 1)
            self._show(category)
        layout.addLayout(form)

        buttons = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Save
            | QtWidgets.QDialogButtonBox.StandardButton.Cancel,
            self,
        )
        buttons.accepted.connect(self._save)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def colors(self) -> dict[RuleCategory, str]:
        return dict(self._colors)

    def _show(self, category: RuleCategory) -> None:
        color = self._colors[category]
        button = self._buttons[category]
        button.setText(color)
        button.setStyleSheet(f"background-color: {color};")

    def _choose(self, category: RuleCategory) -> None:
        color = QtWidgets.QColorDialog.getColor(
            QtGui.QColor(self._colors[category]), self, CATEGORY_LABELS[category]
        )
        if color.isValid():
            self._colors[category] = color.name().upper()
            self._show(category)

    def _save(self) -> None:
        if not self._settings.update_colors(self._colors):
            QtWidgets.QMessageBox.warning(self, "Auto Mark", "Could not save the color settings.")
            return
        self.accept()


class AutoMarkDialog(QtWidgets.QDialog):
    clear_marks_requested = QtCore.pyqtSignal()

    def __init__(
        self,
        rules: list[AutoMarkRule],
        settings: AutoMarkSettings,
        headers: list[str],
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._headers = headers
        self._rules: list[AutoMarkRule] = list(rules)
        self._color = settings.default_color_for(None)
        self.setWindowTitle("Auto Mark")
        self.resize(560, 480)

        layout = QtWidgets.QVBoxLayout(self)

        form = QtWidgets.QGridLayout()
        self._type_combo = QtWidgets.QComboBox(self)
        for rule_type in RuleType:
            self._type_combo.addItem(RULE_LABELS[rule_type], rule_type)
        self._parameter_input = QtWidgets.QLineEdit(self)
        self._name_input = QtWidgets.QLineEdit(self)
        self._name_input.setPlaceholderText("optional")
        self._scope_combo = QtWidgets.QComboBox(self)
        for scope, label in SCOPE_LABELS.items():
            self._scope_combo.addItem(label, scope)
        self._columns_input = QtWidgets.QLineEdit(self)
        self._columns_input.setPlaceholderText("e.g. 1, 3-5")
        self._color_btn = QtWidgets.QPushButton(self)

        form.addWidget(QtWidgets.QLabel("Rule:", self), 0, 0)
        form.addWidget(self._type_combo, 0, 1)
        form.addWidget(QtWidgets.QLabel("Parameter:", self), 1, 0)
        form.addWidget(self._parameter_input, 1, 1)
        form.addWidget(QtWidgets.QLabel("Name:", self), 2, 0)
        form.addWidget(self._name_input, 2, 1)
        form.addWidget(QtWidgets.QLabel("Apply to:", self), 3, 0)
        form.addWidget(self._scope_combo, 3, 1)
        form.addWidget(QtWidgets.QLabel("Columns:", self), 4, 0)
        form.addWidget(self._columns_input, 4, 1)
        form.addWidget(QtWidgets.QLabel("Color:", self), 5, 0)
        form.addWidget(self._color_btn, 5, 1)

        self._add_btn = QtWidgets.QPushButton("Add Rule", self)
        form.addWidget(self._add_btn, 6, 1)
        layout.addLayout(form)

        layout.addWidget(QtWidgets.QLabel("Rules (later rules win):", self))
        self._rules_list = QtWidgets.QListWidget(self)
        self._rules_list.setSelectionMode(
            QtWidgets.QAbstractItemView.SelectionMode.ExtendedSelection
        )
        layout.addWidget(self._rules_list)

        button_row = QtWidgets.QHBoxLayout()
        self._remove_btn = QtWidgets.QPushButton("Remove Selected", self)
        self._save_template_btn = QtWidgets.QPushButton("Save as Template", self)
        self._load_template_btn = QtWidgets.QPushButton("Load Templates", self)
        self._clear_rules_btn = QtWidgets.QPushButton("Clear All Rules", self)
        self._clear_marks_btn = QtWidgets.QPushButton("Clear All Marks", self)
        self._colors_btn = QtWidgets.QPushButton("Colors...", self)
        button_row.addWidget(self._remove_btn)
        button_row.addWidget(self._clear_rules_btn)
        button_row.addWidget(self._save_template_btn)
        button_row.addWidget(self._load_template_btn)
        button_row.addStretch(1)
        button_row.addWidget(self._clear_marks_btn)
        button_row.addWidget(self._colors_btn)
        layout.addLayout(button_row)

        buttons = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Ok
            | QtWidgets.QDialogButtonBox.StandardButton.Cancel,
            self,
        )
        layout.addWidget(buttons)

        self._type_combo.currentIndexChanged.connect(self._on_type_changed)
        self._scope_combo.currentIndexChanged.connect(self._on_scope_changed)
        self._color_btn.clicked.connect(self._choose_color)
        self._add_btn.clicked.connect(self._add_rule)
        self._remove_btn.clicked.connect(self._remove_selected)
        self._save_template_btn.clicked.connect(self._save_templates)
        self._load_template_btn.clicked.connect(self._load_templates)
        self._clear_rules_btn.clicked.connect(self._clear_rules)
        self._clear_marks_btn.clicked.connect(self._clear_marks)
        self._colors_btn.clicked.connect(self._edit_colors)
        self._rules_list.itemChanged.connect(self._on_item_changed)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)

        self._on_type_changed()
        self._on_scope_changed()
        self._refresh_rules()

    def rules(self) -> list[AutoMarkRule]:
        return list(self._rules)

    def _current_type(self) -> RuleType:
        return self._type_combo.currentData()

    def _current_scope(self) -> ApplyScope:
        return self._scope_combo.currentData()

    def _on_type_changed(self, *_: object) -> None:
        rule_type = self._current_type()
        self._parameter_input.setEnabled(rule_type in PARAMETER_TYPES)
        self._set_color(self._settings.default_color_for(rule_type))

    def _on_scope_changed(self, *_: object) -> None:
        self._columns_input.setEnabled(self._current_scope() is ApplyScope.SPECIFIED_COLUMNS)

    def _set_color(self, color: str) -> None:
        self._color = color
        self._color_btn.setText(color)
        self._color_btn.setStyleSheet(f"background-color: {color};")

    def _choose_color(self) -> None:
        color = QtWidgets.QColorDialog.getColor(QtGui.QColor(self._color), self, "Mark Color")
        if color.isValid():
            self._set_color(color.name())

    def _describe(self, rule: AutoMarkRule) -> str:
        text = str(rule)
        if rule.type in PARAMETER_TYPES:
            text = f"{text}: {rule.parameter}"
        if rule.scope is ApplyScope.SPECIFIED_COLUMNS:
            names = [
                self._headers[col] if col < len(self._headers) else f"#{col + 1}"
                for col in rule.specified_columns
            ]
            text = f"{text} [{', '.join(names)}]"
        elif rule.scope is ApplyScope.SELECTED_COLUMN:
            text = f"{text} [selected column]"
        return f"{text} ({category_of(rule.type).value})"

    def _refresh_rules(self) -> None:
        self._rules_list.blockSignals(True)
        self._rules_list.clear()
        for rule in self._rules:
            item = QtWidgets.QListWidgetItem(self._describe(rule))
            item.setData(QtCore.Qt.ItemDataRole.UserRole, rule.id)
            item.setFlags(item.flags() | QtCore.Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(
                QtCore.Qt.CheckState.Checked if rule.enabled else QtCore.Qt.CheckState.Unchecked
            )
            item.setBackground(QtGui.QBrush(QtGui.QColor(rule.color)))
            self._rules_list.addItem(item)
        self._rules_list.blockSignals(False)

    def _on_item_changed(self, item: QtWidgets.QListWidgetItem) -> None:
        rule_id = item.data(QtCore.Qt.ItemDataRole.UserRole)
        enabled = item.checkState() == QtCore.Qt.CheckState.Checked
        self._rules = [
            rule.with_enabled(enabled) if rule.id == rule_id else rule for rule in self._rules
        ]

    def _build_rule(self) -> Optional[AutoMarkRule]:
        rule_type = self._current_type()
        parameter = self._parameter_input.text().strip()
        if rule_type in PARAMETER_TYPES and not parameter:
            QtWidgets.QMessageBox.warning(self, "Auto Mark", "This rule needs a parameter.")
            return None
        scope = self._current_scope()
        columns: tuple[int, ...] = ()
        if scope is ApplyScope.SPECIFIED_COLUMNS:
            try:
                columns = parse_columns(self._columns_input.text())
            except ValueError as exc:
                QtWidgets.QMessageBox.warning(self, "Auto Mark", str(exc))
                return None
            if not columns:
                QtWidgets.QMessageBox.warning(self, "Auto Mark", "Enter at least one column.")
                return None
        return AutoMarkRule(
            type=rule_type,
            parameter=parameter if rule_type in PARAMETER_TYPES else "",
            color=self._color,
            name=self._name_input.text().strip(),
            scope=scope,
            specified_columns=columns,
        )

    def _add_rule(self) -> None:
        rule = self._build_rule()
        if rule is None:
            return
        self._rules.append(rule)
        self._parameter_input.clear()
        self._name_input.clear()
        self._refresh_rules()

    def _selected_ids(self) -> list[str]:
        return [
            item.data(QtCore.Qt.ItemDataRole.UserRole) for item in self._rules_list.selectedItems()
        ]

    def _remove_selected(self) -> None:
        selected = set(self._selected_ids())
        if not selected:
            return
        self._rules = [rule for rule in self._rules if rule.id not in selected]
        self._refresh_rules()

    def _save_templates(self) -> None:
        selected = set(self._selected_ids())
        rules = [rule for rule in self._rules if rule.id in selected] or self._rules
        if not rules:
            return
        known = {template.id for template in self._settings.templates()}
        for rule in rules:
            if rule.id not in known:
                self._settings.add_template(rule)
        QtWidgets.QMessageBox.information(
            self, "Auto Mark", f"Saved {len(rules)} rule(s) as templates."
        )

    def _load_templates(self) -> None:
        templates = self._settings.load().templates()
        if not templates:
            QtWidgets.QMessageBox.information(self, "Auto Mark", "No saved templates.")
            return
        existing = {rule.id for rule in self._rules}
        self._rules.extend(rule for rule in templates if rule.id not in existing)
        self._refresh_rules()

    def _confirm(self, message: str) -> bool:
        answer = QtWidgets.QMessageBox.question(
            self,
            "Auto Mark",
            message,
            QtWidgets.QMessageBox.StandardButton.Yes | QtWidgets.QMessageBox.StandardButton.No,
        )
        return answer == QtWidgets.QMessageBox.StandardButton.Yes

    def clear_rules(self) -> None:
        self._rules = []
        self._refresh_rules()

    def _clear_rules(self) -> None:
        if self._rules and self._confirm("Remove all rules from the list?"):
            self.clear_rules()

    def _clear_marks(self) -> None:
        # Rules stay; only the marks already painted on the grid go.
        if self._confirm("Clear all auto marks? The rules are kept."):
            self.clear_marks_requested.emit()

    def _edit_colors(self) -> None:
        dialog = AutoMarkColorDialog(self._settings, self)
        if dialog.exec() == QtWidgets.QDialog.DialogCode.Accepted:
            self._set_color(self._settings.default_color_for(self._current_type()))
