import re
from typing import NamedTuple, Optional

from markgrid.table import TableData

TERM_SEPARATORS = re.compile(r"[,;，；]")


class SearchResult(NamedTuple):
    row: int
    column: int
    value: str


class InvalidPattern(ValueError):
    def __init__(self, pattern: str, message: str) -> None:
        super().__init__(f"Invalid regular expression {pattern!r}: {message}")
        self.pattern = pattern
        self.message = message


def split_terms(query: str) -> list[str]:
    return [term.strip() for term in TERM_SEPARATORS.split(query) if term.strip()]


def _term_match(value: str, term: str, case_sensitive: bool, fuzzy: bool) -> bool:
    if not case_sensitive:
        value = value.lower()
        term = term.lower()
    if fuzzy:
        return term in value
    return value == term


def search(
    table: TableData,
    query: str,
    case_sensitive: bool = False,
    fuzzy: bool = True,
    use_regex: bool = False,
) -> list[SearchResult]:
    if not query:
        return []
    results: list[SearchResult] = []
    if use_regex:
        try:
            pattern = re.compile(query, 0 if case_sensitive else re.IGNORECASE)
        except re.error as exc:
            raise InvalidPattern(query, str(exc)) from exc
        for row, col, value in table.iter_cells():
            if pattern.search(value):
                results.append(SearchResult(row, col, value))
        return results

    terms = split_terms(query)
    if not terms:
        return []
    for row, col, value in table.iter_cells():
        if any(_term_match(value, term, case_sensitive, fuzzy) for term in terms):
            results.append(SearchResult(row, col, value))
    return results


class SearchSession:
    """Results of the last query plus a cursor for next/previous navigation."""

    def __init__(self) -> None:
        self.query = ""
        self.case_sensitive = False
        self.fuzzy = True
        self.use_regex = False
        self._results: list[SearchResult] = []
        self._matches: set[tuple[int, int]] = set()
        self._index = -1

    def __len__(self) -> int:
        return len(self._results)

    def __bool__(self) -> bool:
        return bool(self._results)

    @property
    def results(self) -> list[SearchResult]:
        return list(self._results)

    @property
    def current_index(self) -> int:
        return self._index

    def run(
        self,
        table: TableData,
        query: str,
        case_sensitive: bool = False,
        fuzzy: bool = True,
        use_regex: bool = False,
    ) -> list[SearchResult]:
        self.clear()
        results = search(table, query, case_sensitive, fuzzy, use_regex)
        self.query = query
        self.case_sensitive = case_sensitive
        self.fuzzy = fuzzy
        self.use_regex = use_regex
        self._results = results
        self._matches = {(result.row, result.column) for result in results}
        return list(results)

    def current(self) -> Optional[SearchResult]:
        if 0 <= self._index < len(self._results):
            return self._results[self._index]
        return None

    def next(self) -> Optional[SearchResult]:
        if not self._results:
            return None
        self._index = (self._index + 1) % len(self._results)
        return self._results[self._index]

    def previous(self) -> Optional[SearchResult]:
        if not self._results:
            return None
        if self._index < 0:
            self._index = len(self._results) - 1
        else:
            self._index = (self._index - 1) % len(self._results)
        return self._results[self._index]

    def is_match(self, row: int, col: int) -> bool:
        return (row, col) in self._matches

    def clear(self) -> None:
        self.query = ""
        self._results = []
        self._matches = set()
        self._index = -1
