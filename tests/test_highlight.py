import random

from markgrid.highlight import ConflictStrategy, HighlightKind, HighlightManager

A = "#AAAAAA"
B = "#BBBBBB"
C = "#CCCCCC"


def test_cell_beats_row_and_column(highlights):
    highlights.set_row_highlight(1, A)
    highlights.set_column_highlight(2, B)
    highlights.set_cell_highlight(1, 2, C)
    assert highlights.get_final_highlight_color(1, 2) == C


def test_row_and_column_alone(highlights):
    highlights.set_row_highlight(1, A)
    highlights.set_column_highlight(2, B)
    assert highlights.get_final_highlight_color(1, 0) == A
    assert highlights.get_final_highlight_color(0, 2) == B
    assert highlights.get_final_highlight_color(0, 0) is None


def test_text_only_cell_falls_through_for_background(highlights):
    highlights.set_row_highlight(0, A)
    highlights.set_cell_highlight(0, 0, None, C)
    assert highlights.get_final_highlight_color(0, 0) == A
    assert highlights.get_final_text_color(0, 0) == C


def test_overwrite_picks_newest():
    manager = HighlightManager(ConflictStrategy.OVERWRITE)
    row_entry = manager.set_row_highlight(2, A)
    col_entry = manager.set_column_highlight(3, B)
    assert col_entry.created_at > row_entry.created_at
    assert manager.get_final_highlight_color(2, 3) == B
    manager.set_row_highlight(2, A)
    assert manager.get_final_highlight_color(2, 3) == A


def test_random_choice_is_stable():
    manager = HighlightManager(ConflictStrategy.RANDOM, rng=random.Random(7))
    manager.set_row_highlight(2, A)
    manager.set_column_highlight(3, B)
    first = manager.get_final_highlight_color(2, 3)
    assert first in {A, B}
    for _ in range(20):
        assert manager.get_final_highlight_color(2, 3) == first
    assert (2, 3) in manager.conflict_cache


def test_random_choices_cover_both_sides():
    manager = HighlightManager(ConflictStrategy.RANDOM, rng=random.Random(0))
    for index in range(50):
        manager.set_row_highlight(index, A)
        manager.set_column_highlight(index, B)
    picks = {manager.get_final_highlight_color(row, 0) for row in range(50)}
    assert picks == {A, B}


def test_cache_invalidation():
    manager = HighlightManager(ConflictStrategy.RANDOM, rng=random.Random(3))
    manager.set_row_highlight(0, A)
    manager.set_column_highlight(0, B)
    manager.get_final_highlight_color(0, 0)
    assert len(manager.conflict_cache) == 1
    manager.conflict_strategy = ConflictStrategy.OVERWRITE
    assert len(manager.conflict_cache) == 0
    manager.conflict_strategy = ConflictStrategy.RANDOM
    manager.get_final_highlight_color(0, 0)
    manager.clear_row_highlight(5)
    assert len(manager.conflict_cache) == 0


def test_text_color_order(highlights):
    highlights.set_column_highlight(0, None, C)
    assert highlights.get_final_text_color(0, 0) == C
    highlights.set_row_highlight(0, None, B)
    assert highlights.get_final_text_color(0, 0) == B
    highlights.set_cell_highlight(0, 0, A, A)
    assert highlights.get_final_text_color(0, 0) == A


def test_clear_cell_text_color(highlights):
    highlights.set_cell_highlight(0, 0, A, B)
    highlights.clear_cell_text_color(0, 0)
    entry = highlights.get_cell_highlight(0, 0)
    assert entry.background == A
    assert entry.text_color is None
    highlights.set_cell_highlight(1, 1, None, B)
    highlights.clear_cell_text_color(1, 1)
    assert highlights.get_cell_highlight(1, 1) is None


def test_clear_all(highlights):
    highlights.set_cell_highlight(0, 0, A)
    highlights.set_row_highlight(1, B)
    highlights.set_column_highlight(2, C)
    assert highlights.has_highlights()
    highlights.clear_all_highlights()
    assert not highlights.has_highlights()


def test_entry_kinds(highlights):
    assert highlights.set_cell_highlight(0, 0, A).kind is HighlightKind.CELL
    assert highlights.set_row_highlight(0, A).kind is HighlightKind.ROW
    assert highlights.set_column_highlight(0, A).kind is HighlightKind.COLUMN


def test_move_row_down(highlights):
    highlights.set_cell_highlight(1, 2, A)
    for row in (2, 3, 4):
        highlights.set_cell_highlight(row, 0, B)
    highlights.set_row_highlight(3, C)
    highlights.move_row(1, 4)
    assert highlights.get_cell_highlight(4, 2).background == A
    assert highlights.get_cell_highlight(1, 2) is None
    assert set(highlights.cell_highlights()) == {(4, 2), (1, 0), (2, 0), (3, 0)}
    assert set(highlights.row_highlights()) == {2}


def test_move_row_up(highlights):
    highlights.set_row_highlight(4, A)
    highlights.set_row_highlight(1, B)
    highlights.move_row(4, 1)
    assert set(highlights.row_highlights()) == {1, 2}
    assert highlights.get_row_highlight(1).background == A
    assert highlights.get_row_highlight(2).background == B


def test_insert_and_remove_rows(highlights):
    highlights.set_row_highlight(2, A)
    highlights.set_cell_highlight(3, 1, B)
    highlights.set_cell_highlight(0, 1, C)
    highlights.insert_rows(1, 2)
    assert set(highlights.row_highlights()) == {4}
    assert set(highlights.cell_highlights()) == {(5, 1), (0, 1)}
    highlights.remove_rows(4)
    assert highlights.row_highlights() == {}
    assert set(highlights.cell_highlights()) == {(4, 1), (0, 1)}


def test_insert_and_remove_columns(highlights):
    highlights.set_column_highlight(1, A)
    highlights.set_cell_highlight(0, 2, B)
    highlights.insert_columns(0)
    assert set(highlights.column_highlights()) == {2}
    assert set(highlights.cell_highlights()) == {(0, 3)}
    highlights.remove_columns(2)
    assert highlights.column_highlights() == {}
    assert set(highlights.cell_highlights()) == {(0, 2)}


def test_defaults(highlights):
    assert highlights.defaults.cell == "#FFFF99"
    assert highlights.defaults.search == "#FFA500"
