import math
import statistics
from dataclasses import dataclass
from typing import Optional, Sequence

from markgrid.rules import TRIM_CHARS, parse_number
from markgrid.table import TableData

RULE = "=" * 40


@dataclass(frozen=True)
class NumericSummary:
    count: int
    total: float
    mean: float
    median: float
    minimum: float
    maximum: float
    q1: float
    q3: float
    variance: float

    @property
    def value_range(self) -> float:
        return self.maximum - self.minimum

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    @property
    def std_dev(self) -> float:
        return math.sqrt(self.variance)

    @property
    def coefficient_of_variation(self) -> Optional[float]:
        """Standard deviation as a percentage of the absolute mean."""
        if self.mean == 0:
            return None
        return self.std_dev / abs(self.mean) * 100


@dataclass(frozen=True)
class TextSummary:
    average_length: float
    longest: str
    shortest: str
    unique_count: int
    duplicate_rate: float


@dataclass(frozen=True)
class ColumnStatistics:
    column: int
    total: int
    non_empty: int
    empty: int
    numeric: Optional[NumericSummary]
    text: Optional[TextSummary]


def percentile(sorted_values: Sequence[float], pct: float) -> float:
    """Linear interpolation between the closest ranks."""
    if not sorted_values:
        return 0.0
    position = pct / 100.0 * (len(sorted_values) - 1)
    lower = math.floor(position)
    upper = math.ceil(position)
    if lower == upper:
        return sorted_values[lower]
    weight = position - lower
    return sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight


def summarize_numbers(values: Sequence[float]) -> Optional[NumericSummary]:
    if not values:
        return None
    ordered = sorted(values)
    mean = statistics.fmean(ordered)
    return NumericSummary(
        count=len(ordered),
        total=math.fsum(ordered),
        mean=mean,
        median=statistics.median(ordered),
        minimum=ordered[0],
        maximum=ordered[-1],
        q1=percentile(ordered, 25),
        q3=percentile(ordered, 75),
        variance=statistics.pvariance(ordered, mu=mean),
    )


def summarize_text(values: Sequence[str]) -> Optional[TextSummary]:
    if not values:
        return None
    longest = max(values, key=len)
    shortest = min(values, key=len)
    unique = len(set(values))
    return TextSummary(
        average_length=sum(len(value) for value in values) / len(values),
        longest=longest,
        shortest=shortest,
        unique_count=unique,
        duplicate_rate=(1 - unique / len(values)) * 100,
    )


def column_statistics(table: TableData, column: int) -> ColumnStatistics:
    if column < 0 or column >= table.column_count:
        raise IndexError(f"Column {column} is out of range (0..{table.column_count - 1})")
    filled: list[str] = []
    numbers: list[float] = []
    for row in range(table.row_count):
        value = table.get_cell(row, column)
        if not value.strip(TRIM_CHARS):
            continue
        filled.append(value)
        number = parse_number(value)
        # NaN and infinities would poison every aggregate.
        if number is not None and math.isfinite(number):
            numbers.append(number)
    return ColumnStatistics(
        column=column,
        total=table.row_count,
        non_empty=len(filled),
        empty=table.row_count - len(filled),
        numeric=summarize_numbers(numbers),
        text=summarize_text(filled),
    )


def _preview(text: str, limit: int = 50) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit - 3]}..."


def format_report(stats: ColumnStatistics, column_name: str = "") -> str:
    title = f"Column {stats.column + 1}"
    if column_name:
        title = f"{title} ({column_name})"
    lines = [
        RULE,
        f"Statistics for {title}",
        RULE,
        "",
        "Overview",
        f"  Rows:          {stats.total}",
        f"  Non-empty:     {stats.non_empty}",
        f"  Empty:         {stats.empty}",
        f"  Numeric:       {stats.numeric.count if stats.numeric else 0}",
        "",
        "Numbers",
    ]
    numeric = stats.numeric
    if numeric is None:
        lines.append("  No numeric values in this column.")
    else:
        lines.extend(
            [
                f"  Sum:           {numeric.total:.4f}",
                f"  Mean:          {numeric.mean:.4f}",
                f"  Median:        {numeric.median:.4f}",
                f"  Min:           {numeric.minimum:.4f}",
                f"  Max:           {numeric.maximum:.4f}",
                f"  Range:         {numeric.value_range:.4f}",
                f"  Q1:            {numeric.q1:.4f}",
                f"  Q3:            {numeric.q3:.4f}",
                f"  IQR:           {numeric.iqr:.4f}",
                f"  Variance:      {numeric.variance:.4f}",
                f"  Std dev:       {numeric.std_dev:.4f}",
            ]
        )
        cv = numeric.coefficient_of_variation
        if cv is not None:
            lines.append(f"  CV:            {cv:.2f}%")
    lines.extend(["", "Text"])
    text = stats.text
    if text is None:
        lines.append("  No non-empty values in this column.")
    else:
        lines.extend(
            [
                f"  Avg length:    {text.average_length:.2f}",
                f"  Longest:       {len(text.longest)} \"{_preview(text.longest)}\"",
                f"  Shortest:      {len(text.shortest)}",
                f"  Unique values: {text.unique_count}",
                f"  Duplicates:    {text.duplicate_rate:.2f}%",
            ]
        )
    lines.extend(["", RULE])
    return "\n".join(lines)
