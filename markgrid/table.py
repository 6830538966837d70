from typing import Iterator, Optional, Sequence


class OutOfRange(IndexError):
    def __init__(self, row: int, col: int, rows: int, columns: int) -> None:
        super().__init__(f"Cell ({row}, {col}) is outside a {rows}x{columns} table.")
        self.row = row
        self.col = col


class TableData:
    """Rectangular grid of string cells with a header row.

    Every row always holds exactly ``column_count`` cells; the structural
    operations below splice all rows (and the header) together.
    """

    def __init__(self, rows: int = 0, columns: int = 0) -> None:
        self._header: list[str] = [f"column{col + 1}" for col in range(max(columns, 0))]
        self._rows: list[list[str]] = [[""] * len(self._header) for _ in range(max(rows, 0))]

    @classmethod
    def from_rows(
        cls, header: Optional[Sequence[str]], rows: Sequence[Sequence[str]]
    ) -> "TableData":
        if header is None:
            width = len(rows[0]) if rows else 0
            header = [f"column{col + 1}" for col in range(width)]
        expected_cols = len(header)
        for idx, row in enumerate(rows, start=2):
            if len(row) != expected_cols:
                raise ValueError(f"Line {idx} has {len(row)} columns, expected {expected_cols}.")
        table = cls()
        table._header = [str(name) for name in header]
        table._rows = [[str(value) for value in row] for row in rows]
        return table

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return len(self._header)

    @property
    def header(self) -> list[str]:
        return list(self._header)

    def rows(self) -> list[list[str]]:
        return [list(row) for row in self._rows]

    def snapshot(self) -> "TableData":
        return TableData.from_rows(self._header, self._rows)

    def iter_cells(self) -> Iterator[tuple[int, int, str]]:
        for row, values in enumerate(self._rows):
            for col, value in enumerate(values):
                yield row, col, value

    def _check(self, row: int, col: int) -> None:
        if not (0 <= row < self.row_count and 0 <= col < self.column_count):
            raise OutOfRange(row, col, self.row_count, self.column_count)

    def get_cell(self, row: int, col: int) -> str:
        self._check(row, col)
        return self._rows[row][col]

    def set_cell(self, row: int, col: int, value: object) -> None:
        self._check(row, col)
        self._rows[row][col] = "" if value is None else str(value)

    def add_row(self) -> int:
        self._rows.append([""] * self.column_count)
        return self.row_count - 1

    def insert_row(self, index: int) -> int:
        # No selection (or a stale index) means append.
        if index < 0 or index > self.row_count:
            return self.add_row()
        self._rows.insert(index, [""] * self.column_count)
        return index

    def add_column(self, name: str = "") -> int:
        self._header.append(name)
        for row in self._rows:
            row.append("")
        return self.column_count - 1

    def insert_column(self, index: int, name: str = "") -> int:
        if index < 0 or index > self.column_count:
            return self.add_column(name)
        self._header.insert(index, name)
        for row in self._rows:
            row.insert(index, "")
        return index

    def remove_row(self, index: int) -> bool:
        if index < 0 or index >= self.row_count:
            return False
        del self._rows[index]
        return True

    def remove_column(self, index: int) -> bool:
        if index < 0 or index >= self.column_count:
            return False
        del self._header[index]
        for row in self._rows:
            del row[index]
        return True

    def move_row(self, from_row: int, to_row: int) -> bool:
        if not (0 <= from_row < self.row_count and 0 <= to_row < self.row_count):
            return False
        if from_row != to_row:
            self._rows.insert(to_row, self._rows.pop(from_row))
        return True

    def rename_column(self, col: int, name: str) -> bool:
        if col < 0 or col >= self.column_count:
            return False
        self._header[col] = str(name)
        return True

    def generate_column_name(self, base: str = "new_column") -> str:
        existing = {name for name in self._header if name}
        if base not in existing:
            return base
        counter = 2
        while f"{base}_{counter}" in existing:
            counter += 1
        return f"{base}_{counter}"

    def resize(self, rows: int, columns: int) -> None:
        self._header = [f"column{col + 1}" for col in range(max(columns, 0))]
        self._rows = [[""] * len(self._header) for _ in range(max(rows, 0))]

    def clear(self) -> None:
        self._header = []
        self._rows = []
