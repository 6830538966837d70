import pytest

pytest.importorskip("PyQt6.QtWidgets")

from PyQt6 import QtGui, QtWidgets  # noqa: E402

from markgrid.annotations import AnnotationEngine  # noqa: E402
from markgrid.config import AppConfig, AutoMarkSettings  # noqa: E402
from markgrid.models import CsvDocument  # noqa: E402
from markgrid.rules import AutoMarkRule, RuleCategory, RuleType  # noqa: E402
from markgrid.widgets.automark_dialog import AutoMarkColorDialog, AutoMarkDialog  # noqa: E402
from markgrid.widgets.editor import EditorWidget  # noqa: E402
from markgrid.widgets.statistics_dialog import ColumnStatisticsDialog  # noqa: E402

Yes = QtWidgets.QMessageBox.StandardButton.Yes


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    return app


@pytest.fixture
def settings(tmp_path):
    return AutoMarkSettings(AppConfig(tmp_path))


@pytest.fixture
def confirm(monkeypatch):
    monkeypatch.setattr(QtWidgets.QMessageBox, "question", lambda *args, **kwargs: Yes)


def test_color_dialog_saves_choice(qapp, settings, tmp_path, monkeypatch):
    monkeypatch.setattr(
        QtWidgets.QColorDialog, "getColor", lambda *args, **kwargs: QtGui.QColor("#123456")
    )
    dialog = AutoMarkColorDialog(settings)
    dialog._buttons[RuleCategory.STRING].click()
    assert dialog.colors()[RuleCategory.STRING] == "#123456"
    save = dialog.findChild(QtWidgets.QDialogButtonBox).button(
        QtWidgets.QDialogButtonBox.StandardButton.Save
    )
    save.click()
    assert dialog.result() == QtWidgets.QDialog.DialogCode.Accepted
    assert settings.category_colors[RuleCategory.STRING] == "#123456"
    reloaded = AutoMarkSettings(AppConfig(tmp_path)).load()
    assert reloaded.default_color_for(RuleType.STRING_REGEX) == "#123456"


def test_automark_dialog_clear_buttons(qapp, settings, confirm):
    rules = [AutoMarkRule(RuleType.EMPTY_NULL), AutoMarkRule(RuleType.NUMBER_PRIME)]
    dialog = AutoMarkDialog(rules, settings, ["a", "b"])
    requests = []
    dialog.clear_marks_requested.connect(lambda: requests.append(True))
    dialog._clear_marks_btn.click()
    assert requests == [True]
    assert dialog.rules() == rules
    dialog._clear_rules_btn.click()
    assert dialog.rules() == []


def test_editor_clear_auto_marks(qapp, table):
    engine = AnnotationEngine(table)
    editor = EditorWidget(CsvDocument("sample.csv", ",", table), engine)
    engine.automarks.add_rule(AutoMarkRule(RuleType.EMPTY_NULL))
    editor.apply_rules()
    assert engine.automarks.marks()
    editor.clear_auto_marks()
    assert engine.automarks.marks() == {}
    assert len(engine.automarks.rules()) == 1
    assert editor.current_column() is None


def test_statistics_dialog_reports_column(qapp, table):
    dialog = ColumnStatisticsDialog(table, column=1)
    assert "Statistics for Column 2 (amount)" in dialog.report_text()
    assert "Sum:           59.0000" in dialog.report_text()
    empty = ColumnStatisticsDialog(table)
    assert empty.report_text() == ""
    empty.calculate()
    assert "Column 1 (name)" in empty.report_text()
