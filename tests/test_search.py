import pytest

from markgrid.search import InvalidPattern, SearchResult, SearchSession, search, split_terms
from markgrid.table import TableData


@pytest.fixture
def words() -> TableData:
    return TableData.from_rows(
        ["a", "b"],
        [["FOOBAR", "foo"], ["bar", "Baz"], ["", "food"]],
    )


def test_one_result_per_cell():
    table = TableData.from_rows(["a"], [["FOOBAR"]])
    assert search(table, "foo,bar") == [SearchResult(0, 0, "FOOBAR")]


def test_fuzzy_case_insensitive(words):
    cells = [(r.row, r.column) for r in search(words, "foo")]
    assert cells == [(0, 0), (0, 1), (2, 1)]


def test_exact_match(words):
    cells = [(r.row, r.column) for r in search(words, "foo", fuzzy=False)]
    assert cells == [(0, 1)]


def test_case_sensitive(words):
    assert [r.value for r in search(words, "baz", case_sensitive=True)] == []
    assert [r.value for r in search(words, "Baz", case_sensitive=True)] == ["Baz"]


def test_case_folding_is_plain_lowercase():
    table = TableData.from_rows(["a"], [["Straße"], ["STRASSE"]])
    assert [r.row for r in search(table, "ss")] == [1]
    assert [r.row for r in search(table, "STRAßE", fuzzy=False)] == [0]


def test_fullwidth_separators():
    assert split_terms("foo，bar；baz; ,qux") == ["foo", "bar", "baz", "qux"]


def test_empty_query(words):
    assert search(words, "") == []
    assert search(words, " , ;") == []


def test_regex_is_a_find(words):
    cells = [(r.row, r.column) for r in search(words, "^ba", use_regex=True)]
    assert cells == [(1, 0), (1, 1)]
    cells = [(r.row, r.column) for r in search(words, "o+d", use_regex=True)]
    assert cells == [(2, 1)]


def test_invalid_regex(words):
    with pytest.raises(InvalidPattern) as excinfo:
        search(words, "(oops", use_regex=True)
    assert excinfo.value.pattern == "(oops"
    assert isinstance(excinfo.value, ValueError)


class TestSearchSession:
    def test_navigation_wraps(self, words):
        session = SearchSession()
        results = session.run(words, "foo")
        assert len(session) == 3
        assert session.current() is None
        assert session.next() == results[0]
        assert session.next() == results[1]
        assert session.next() == results[2]
        assert session.next() == results[0]
        assert session.previous() == results[2]
        assert session.current_index == 2

    def test_previous_from_start(self, words):
        session = SearchSession()
        results = session.run(words, "foo")
        assert session.previous() == results[-1]

    def test_is_match_and_clear(self, words):
        session = SearchSession()
        session.run(words, "bar")
        assert session.is_match(0, 0)
        assert not session.is_match(0, 1)
        session.clear()
        assert not session
        assert session.next() is None
        assert not session.is_match(0, 0)

    def test_failed_run_leaves_session_cleared(self, words):
        session = SearchSession()
        session.run(words, "foo")
        with pytest.raises(InvalidPattern):
            session.run(words, "[", use_regex=True)
        assert len(session) == 0
        assert session.query == ""
