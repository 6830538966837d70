import logging
from typing import Iterable, Optional

from markgrid.rules import AutoMarkRule, evaluate
from markgrid.table import TableData

logger = logging.getLogger(__name__)

Coord = tuple[int, int]


class AutoMarkManager:
    """Ordered rule list plus the cell colors derived from it.

    The color map is a cache: ``apply_rules`` rebuilds it from scratch, the
    rule list and the table stay the source of truth.
    """

    def __init__(self, rules: Optional[Iterable[AutoMarkRule]] = None) -> None:
        self._rules: list[AutoMarkRule] = list(rules or [])
        self._colors: dict[Coord, str] = {}
        self._applying = False

    def add_rule(self, rule: AutoMarkRule) -> None:
        self._rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        for idx, rule in enumerate(self._rules):
            if rule.id == rule_id:
                del self._rules[idx]
                return True
        return False

    def get_rule(self, rule_id: str) -> Optional[AutoMarkRule]:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def rules(self) -> list[AutoMarkRule]:
        return list(self._rules)

    def set_rules(self, rules: Iterable[AutoMarkRule]) -> None:
        self._rules = list(rules)

    def clear_rules(self) -> None:
        self._rules.clear()
        self._colors.clear()

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> bool:
        for idx, rule in enumerate(self._rules):
            if rule.id == rule_id:
                self._rules[idx] = rule.with_enabled(enabled)
                return True
        return False

    def _enabled_rules(self) -> list[AutoMarkRule]:
        return [rule for rule in self._rules if rule.enabled]

    def apply_rules(self, table: TableData, selected_column: Optional[int] = None) -> int:
        if self._applying:
            raise RuntimeError("apply_rules is already running")
        self._applying = True
        try:
            self._colors.clear()
            rules = self._enabled_rules()
            for rule in rules:
                for row, col, value in table.iter_cells():
                    if not rule.in_scope(col, selected_column):
                        continue
                    if evaluate(rule, value):
                        self._colors[(row, col)] = rule.color
        finally:
            self._applying = False
        logger.debug(
            "Applied %d rule(s) to %dx%d table, %d cell(s) marked",
            len(rules),
            table.row_count,
            table.column_count,
            len(self._colors),
        )
        return len(self._colors)

    def reapply_cell(
        self, table: TableData, row: int, col: int, selected_column: Optional[int] = None
    ) -> Optional[str]:
        if self._applying:
            raise RuntimeError("Cannot update a single cell while apply_rules is running")
        value = table.get_cell(row, col)
        for rule in self._enabled_rules():
            if rule.in_scope(col, selected_column) and evaluate(rule, value):
                self._colors[(row, col)] = rule.color
                return rule.color
        self._colors.pop((row, col), None)
        return None

    def get_auto_mark_color(self, row: int, col: int) -> Optional[str]:
        return self._colors.get((row, col))

    def marks(self) -> dict[Coord, str]:
        return dict(self._colors)

    def clear_auto_marks(self) -> None:
        self._colors.clear()

    def clear_cell_auto_mark(self, row: int, col: int) -> None:
        self._colors.pop((row, col), None)

    def clear_row_auto_mark(self, row: int, columns: int) -> None:
        for col in range(columns):
            self._colors.pop((row, col), None)

    def clear_column_auto_mark(self, col: int, rows: int) -> None:
        for row in range(rows):
            self._colors.pop((row, col), None)
