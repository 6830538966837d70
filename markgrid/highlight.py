"""Manual cell, row and column highlights.

Background precedence for a cell is: its own highlight, then the row/column
pair resolved by the conflict strategy, then the row alone, then the column
alone. Text color skips conflict resolution and simply checks cell, row,
column in that order.
"""

import enum
import itertools
import logging
import random
from dataclasses import dataclass, replace
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

Coord = tuple[int, int]
K = TypeVar("K")


class HighlightKind(enum.Enum):
    CELL = "cell"
    ROW = "row"
    COLUMN = "column"
    SEARCH = "search"


class ConflictStrategy(enum.Enum):
    OVERWRITE = "overwrite"
    RANDOM = "random"


@dataclass(frozen=True)
class HighlightEntry:
    kind: HighlightKind
    background: Optional[str]
    text_color: Optional[str] = None
    created_at: int = 0


@dataclass
class HighlightDefaults:
    cell: str = "#FFFF99"
    row: str = "#ADD8E6"
    column: str = "#90EE90"
    text: str = "#FFD700"
    search: str = "#FFA500"


class ConflictCache:
    """Memoized random picks for cells covered by both a row and a column highlight."""

    def __init__(self) -> None:
        self._choices: dict[Coord, Optional[str]] = {}

    def __len__(self) -> int:
        return len(self._choices)

    def __contains__(self, coord: object) -> bool:
        return coord in self._choices

    def get_or_choose(self, coord: Coord, choose: Callable[[], Optional[str]]) -> Optional[str]:
        if coord not in self._choices:
            self._choices[coord] = choose()
        return self._choices[coord]

    def invalidate(self) -> None:
        if self._choices:
            logger.debug("Dropping %d cached conflict choice(s)", len(self._choices))
        self._choices.clear()


def _shift_keys_on_insert(
    mapping: dict[K, HighlightEntry],
    key_index: Callable[[K], int],
    rekey: Callable[[K, int], K],
    start: int,
    count: int,
) -> dict[K, HighlightEntry]:
    updated: dict[K, HighlightEntry] = {}
    for key, entry in mapping.items():
        index = key_index(key)
        if index >= start:
            updated[rekey(key, index + count)] = entry
        else:
            updated[key] = entry
    return updated


def _shift_keys_on_remove(
    mapping: dict[K, HighlightEntry],
    key_index: Callable[[K], int],
    rekey: Callable[[K, int], K],
    start: int,
    count: int,
) -> dict[K, HighlightEntry]:
    end = start + count - 1
    updated: dict[K, HighlightEntry] = {}
    for key, entry in mapping.items():
        index = key_index(key)
        if index < start:
            updated[key] = entry
        elif index > end:
            updated[rekey(key, index - count)] = entry
    return updated


def _moved_index(index: int, from_row: int, to_row: int) -> int:
    if index == from_row:
        return to_row
    if from_row < to_row and from_row < index <= to_row:
        return index - 1
    if to_row < from_row and to_row <= index < from_row:
        return index + 1
    return index


class HighlightManager:
    def __init__(
        self,
        strategy: ConflictStrategy = ConflictStrategy.OVERWRITE,
        rng: Optional[random.Random] = None,
        defaults: Optional[HighlightDefaults] = None,
    ) -> None:
        self._cell_highlights: dict[Coord, HighlightEntry] = {}
        self._row_highlights: dict[int, HighlightEntry] = {}
        self._column_highlights: dict[int, HighlightEntry] = {}
        self._strategy = strategy
        self._rng = rng or random.Random()
        self._clock = itertools.count(1)
        self.conflict_cache = ConflictCache()
        self.defaults = defaults or HighlightDefaults()

    def _entry(
        self, kind: HighlightKind, background: Optional[str], text_color: Optional[str]
    ) -> HighlightEntry:
        return HighlightEntry(kind, background, text_color, next(self._clock))

    @property
    def conflict_strategy(self) -> ConflictStrategy:
        return self._strategy

    @conflict_strategy.setter
    def conflict_strategy(self, strategy: ConflictStrategy) -> None:
        self._strategy = strategy
        self.conflict_cache.invalidate()

    def set_cell_highlight(
        self, row: int, col: int, background: Optional[str], text_color: Optional[str] = None
    ) -> HighlightEntry:
        entry = self._entry(HighlightKind.CELL, background, text_color)
        self._cell_highlights[(row, col)] = entry
        return entry

    def set_row_highlight(
        self, row: int, background: Optional[str], text_color: Optional[str] = None
    ) -> HighlightEntry:
        entry = self._entry(HighlightKind.ROW, background, text_color)
        self._row_highlights[row] = entry
        self.conflict_cache.invalidate()
        return entry

    def set_column_highlight(
        self, col: int, background: Optional[str], text_color: Optional[str] = None
    ) -> HighlightEntry:
        entry = self._entry(HighlightKind.COLUMN, background, text_color)
        self._column_highlights[col] = entry
        self.conflict_cache.invalidate()
        return entry

    def get_cell_highlight(self, row: int, col: int) -> Optional[HighlightEntry]:
        return self._cell_highlights.get((row, col))

    def get_row_highlight(self, row: int) -> Optional[HighlightEntry]:
        return self._row_highlights.get(row)

    def get_column_highlight(self, col: int) -> Optional[HighlightEntry]:
        return self._column_highlights.get(col)

    def cell_highlights(self) -> dict[Coord, HighlightEntry]:
        return dict(self._cell_highlights)

    def row_highlights(self) -> dict[int, HighlightEntry]:
        return dict(self._row_highlights)

    def column_highlights(self) -> dict[int, HighlightEntry]:
        return dict(self._column_highlights)

    def has_highlights(self) -> bool:
        return bool(self._cell_highlights or self._row_highlights or self._column_highlights)

    def clear_cell_highlight(self, row: int, col: int) -> None:
        self._cell_highlights.pop((row, col), None)
        self.conflict_cache.invalidate()

    def clear_cell_text_color(self, row: int, col: int) -> None:
        entry = self._cell_highlights.get((row, col))
        if entry is None:
            return
        if entry.background is None:
            del self._cell_highlights[(row, col)]
        else:
            self._cell_highlights[(row, col)] = replace(entry, text_color=None)
        self.conflict_cache.invalidate()

    def clear_row_highlight(self, row: int) -> None:
        self._row_highlights.pop(row, None)
        self.conflict_cache.invalidate()

    def clear_column_highlight(self, col: int) -> None:
        self._column_highlights.pop(col, None)
        self.conflict_cache.invalidate()

    def clear_all_highlights(self) -> None:
        self._cell_highlights.clear()
        self._row_highlights.clear()
        self._column_highlights.clear()
        self.conflict_cache.invalidate()

    def get_final_highlight_color(self, row: int, col: int) -> Optional[str]:
        cell = self._cell_highlights.get((row, col))
        if cell is not None and cell.background is not None:
            return cell.background
        row_entry = self._row_highlights.get(row)
        col_entry = self._column_highlights.get(col)
        if row_entry is not None and col_entry is not None:
            return self._resolve_conflict(row, col, row_entry, col_entry)
        if row_entry is not None:
            return row_entry.background
        if col_entry is not None:
            return col_entry.background
        return None

    def get_final_text_color(self, row: int, col: int) -> Optional[str]:
        for entry in (
            self._cell_highlights.get((row, col)),
            self._row_highlights.get(row),
            self._column_highlights.get(col),
        ):
            if entry is not None and entry.text_color is not None:
                return entry.text_color
        return None

    def _resolve_conflict(
        self, row: int, col: int, row_entry: HighlightEntry, col_entry: HighlightEntry
    ) -> Optional[str]:
        if self._strategy is ConflictStrategy.OVERWRITE:
            if row_entry.created_at > col_entry.created_at:
                return row_entry.background
            return col_entry.background
        return self.conflict_cache.get_or_choose(
            (row, col),
            lambda: row_entry.background if self._rng.random() < 0.5 else col_entry.background,
        )

    def move_row(self, from_row: int, to_row: int) -> None:
        if from_row == to_row:
            return
        self._row_highlights = {
            _moved_index(row, from_row, to_row): entry
            for row, entry in self._row_highlights.items()
        }
        self._cell_highlights = {
            (_moved_index(row, from_row, to_row), col): entry
            for (row, col), entry in self._cell_highlights.items()
        }
        self.conflict_cache.invalidate()
        logger.debug("Moved row highlights %d -> %d", from_row, to_row)

    def insert_rows(self, row: int, count: int = 1) -> None:
        if count <= 0:
            return
        self._row_highlights = _shift_keys_on_insert(
            self._row_highlights, lambda key: key, lambda _, index: index, row, count
        )
        self._cell_highlights = _shift_keys_on_insert(
            self._cell_highlights, lambda key: key[0], lambda key, index: (index, key[1]), row, count
        )
        self.conflict_cache.invalidate()

    def remove_rows(self, row: int, count: int = 1) -> None:
        if count <= 0:
            return
        self._row_highlights = _shift_keys_on_remove(
            self._row_highlights, lambda key: key, lambda _, index: index, row, count
        )
        self._cell_highlights = _shift_keys_on_remove(
            self._cell_highlights, lambda key: key[0], lambda key, index: (index, key[1]), row, count
        )
        self.conflict_cache.invalidate()

    def insert_columns(self, col: int, count: int = 1) -> None:
        if count <= 0:
            return
        self._column_highlights = _shift_keys_on_insert(
            self._column_highlights, lambda key: key, lambda _, index: index, col, count
        )
        self._cell_highlights = _shift_keys_on_insert(
            self._cell_highlights, lambda key: key[1], lambda key, index: (key[0], index), col, count
        )
        self.conflict_cache.invalidate()

    def remove_columns(self, col: int, count: int = 1) -> None:
        if count <= 0:
            return
        self._column_highlights = _shift_keys_on_remove(
            self._column_highlights, lambda key: key, lambda _, index: index, col, count
        )
        self._cell_highlights = _shift_keys_on_remove(
            self._cell_highlights, lambda key: key[1], lambda key, index: (key[0], index), col, count
        )
        self.conflict_cache.invalidate()
