import pytest

from markgrid.automark import AutoMarkManager
from markgrid.rules import EVALUATORS, ApplyScope, AutoMarkRule, RuleType
from markgrid.table import TableData

RED = "#FF0000"
BLUE = "#0000FF"


def contains(text, color, **kwargs):
    return AutoMarkRule(RuleType.STRING_CONTAINS, text, color=color, **kwargs)


@pytest.fixture
def letters() -> TableData:
    return TableData.from_rows(["x", "y"], [["ab", "a"], ["b", "c"]])


def test_later_rule_wins(letters):
    manager = AutoMarkManager([contains("a", RED), contains("b", BLUE)])
    assert manager.apply_rules(letters) == 3
    assert manager.get_auto_mark_color(0, 0) == BLUE
    assert manager.get_auto_mark_color(0, 1) == RED
    assert manager.get_auto_mark_color(1, 0) == BLUE
    assert manager.get_auto_mark_color(1, 1) is None


def test_apply_rebuilds_from_scratch(letters):
    manager = AutoMarkManager([contains("a", RED)])
    manager.apply_rules(letters)
    letters.set_cell(0, 1, "z")
    manager.apply_rules(letters)
    assert manager.get_auto_mark_color(0, 1) is None


def test_disabled_rules_are_skipped(letters):
    first = contains("a", RED)
    manager = AutoMarkManager([first])
    assert manager.set_rule_enabled(first.id, False)
    assert manager.apply_rules(letters) == 0
    assert manager.set_rule_enabled("missing", True) is False


def test_specified_columns(letters):
    manager = AutoMarkManager(
        [contains("a", RED, scope=ApplyScope.SPECIFIED_COLUMNS, specified_columns=(1,))]
    )
    manager.apply_rules(letters)
    assert manager.marks() == {(0, 1): RED}


def test_selected_column(letters):
    manager = AutoMarkManager([contains("a", RED, scope=ApplyScope.SELECTED_COLUMN)])
    manager.apply_rules(letters, selected_column=0)
    assert manager.marks() == {(0, 0): RED}
    manager.apply_rules(letters)
    assert set(manager.marks()) == {(0, 0), (0, 1)}


def test_reapply_cell_first_match_wins(letters):
    manager = AutoMarkManager([contains("a", RED), contains("b", BLUE)])
    manager.apply_rules(letters)
    assert manager.reapply_cell(letters, 0, 0) == RED
    assert manager.get_auto_mark_color(0, 0) == RED


def test_reapply_cell_clears_when_nothing_matches(letters):
    manager = AutoMarkManager([contains("a", RED)])
    manager.apply_rules(letters)
    letters.set_cell(0, 0, "zz")
    assert manager.reapply_cell(letters, 0, 0) is None
    assert manager.get_auto_mark_color(0, 0) is None


def test_rule_list_management():
    first = contains("a", RED)
    second = contains("b", BLUE)
    manager = AutoMarkManager()
    manager.add_rule(first)
    manager.add_rule(second)
    assert manager.get_rule(second.id) is second
    assert manager.remove_rule(first.id)
    assert manager.remove_rule(first.id) is False
    assert manager.rules() == [second]


def test_clear_row_and_column():
    manager = AutoMarkManager([AutoMarkRule(RuleType.EMPTY_NULL, color=RED)])
    table = TableData(rows=3, columns=3)
    manager.apply_rules(table)
    manager.clear_row_auto_mark(1, table.column_count)
    manager.clear_column_auto_mark(0, table.row_count)
    assert set(manager.marks()) == {(0, 1), (0, 2), (2, 1), (2, 2)}
    manager.clear_cell_auto_mark(0, 1)
    assert (0, 1) not in manager.marks()
    manager.clear_rules()
    assert manager.marks() == {}


def test_reentrant_apply_is_rejected(letters, monkeypatch):
    manager = AutoMarkManager([contains("a", RED)])
    seen = []

    def reenter(value, parameter):
        with pytest.raises(RuntimeError):
            manager.apply_rules(letters)
        with pytest.raises(RuntimeError):
            manager.reapply_cell(letters, 0, 0)
        seen.append(value)
        return False

    monkeypatch.setitem(EVALUATORS, RuleType.STRING_CONTAINS, reenter)
    assert manager.apply_rules(letters) == 0
    assert len(seen) == 4
    # The guard is released afterwards.
    monkeypatch.undo()
    assert manager.apply_rules(letters) == 2
