"""Auto-mark rules and the per-type predicates that evaluate them.

Evaluation is permissive: unparsable numbers, broken patterns and malformed
IDs simply do not match, so a bad rule never interrupts rendering.
"""

import enum
import functools
import re
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Pattern


class RuleType(enum.Enum):
    NUMBER_GREATER = "number_greater"
    NUMBER_LESS = "number_less"
    NUMBER_EQUAL = "number_equal"
    NUMBER_PRIME = "number_prime"
    STRING_CONTAINS = "string_contains"
    STRING_REGEX = "string_regex"
    FORMAT_EMAIL = "format_email"
    FORMAT_PHONE = "format_phone"
    FORMAT_URL = "format_url"
    FORMAT_ID_CARD = "format_id_card"
    EMPTY_NULL = "empty_null"
    EMPTY_WHITESPACE = "empty_whitespace"
    EMPTY_ZERO_LENGTH = "empty_zero_length"


class RuleCategory(enum.Enum):
    NUMBER = "number"
    STRING = "string"
    FORMAT = "format"
    EMPTY = "empty"


class ApplyScope(enum.Enum):
    SELECTED_COLUMN = "selected_column"
    ALL_COLUMNS = "all_columns"
    SPECIFIED_COLUMNS = "specified_columns"


RULE_LABELS: dict[RuleType, str] = {
    RuleType.NUMBER_GREATER: "Number greater than",
    RuleType.NUMBER_LESS: "Number less than",
    RuleType.NUMBER_EQUAL: "Number equal to",
    RuleType.NUMBER_PRIME: "Prime number",
    RuleType.STRING_CONTAINS: "Text contains",
    RuleType.STRING_REGEX: "Matches regex",
    RuleType.FORMAT_EMAIL: "Invalid email",
    RuleType.FORMAT_PHONE: "Invalid phone number",
    RuleType.FORMAT_URL: "Invalid URL",
    RuleType.FORMAT_ID_CARD: "Invalid ID card number",
    RuleType.EMPTY_NULL: "Empty",
    RuleType.EMPTY_WHITESPACE: "Whitespace only",
    RuleType.EMPTY_ZERO_LENGTH: "Zero length",
}

PARAMETER_TYPES = frozenset(
    {
        RuleType.NUMBER_GREATER,
        RuleType.NUMBER_LESS,
        RuleType.NUMBER_EQUAL,
        RuleType.STRING_CONTAINS,
        RuleType.STRING_REGEX,
    }
)


def category_of(rule_type: RuleType) -> RuleCategory:
    return RuleCategory(rule_type.value.split("_", 1)[0])


@dataclass(frozen=True)
class AutoMarkRule:
    type: RuleType
    parameter: str = ""
    color: str = "#FFEB3B"
    name: str = ""
    scope: ApplyScope = ApplyScope.ALL_COLUMNS
    specified_columns: tuple[int, ...] = ()
    enabled: bool = True
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __str__(self) -> str:
        return self.name or RULE_LABELS[self.type]

    def with_enabled(self, enabled: bool) -> "AutoMarkRule":
        return replace(self, enabled=enabled)

    def in_scope(self, col: int, selected_column: Optional[int] = None) -> bool:
        if self.scope is ApplyScope.ALL_COLUMNS:
            return True
        if self.scope is ApplyScope.SPECIFIED_COLUMNS:
            return col in self.specified_columns
        # Without a selected column the rule covers every column.
        return selected_column is None or col == selected_column

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "parameter": self.parameter,
            "color": self.color,
            "scope": self.scope.value,
            "specified_columns": list(self.specified_columns),
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AutoMarkRule":
        columns = data.get("specified_columns") or []
        if not isinstance(columns, list) or not all(isinstance(col, int) for col in columns):
            raise ValueError(f"Invalid column list: {columns!r}")
        rule_id = data.get("id")
        return cls(
            type=RuleType(data["type"]),
            parameter=str(data.get("parameter") or ""),
            color=str(data.get("color") or "#FFEB3B"),
            name=str(data.get("name") or ""),
            scope=ApplyScope(data.get("scope", ApplyScope.ALL_COLUMNS.value)),
            specified_columns=tuple(columns),
            enabled=bool(data.get("enabled", True)),
            id=str(rule_id) if rule_id else uuid.uuid4().hex,
        )


Evaluator = Callable[[Optional[str], Optional[str]], bool]

EVALUATORS: dict[RuleType, Evaluator] = {}


def evaluator(*rule_types: RuleType) -> Callable[[Evaluator], Evaluator]:
    def register(func: Evaluator) -> Evaluator:
        for rule_type in rule_types:
            EVALUATORS[rule_type] = func
        return func

    return register


def evaluate(rule: Optional[AutoMarkRule], value: Optional[str]) -> bool:
    if rule is None:
        return False
    func = EVALUATORS.get(rule.type)
    if func is None:
        return False
    return func(value, rule.parameter)


matches_rule = evaluate


_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

EMAIL_RE = re.compile(r"[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
MOBILE_PHONE_RE = re.compile(r"1[3-9][0-9]{9}")
INTERNATIONAL_PHONE_RE = re.compile(r"\+[0-9]{1,3}[0-9]{10,11}")
URL_RE = re.compile(r"(http|https)://[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}(/.*)?")
ID_CARD_RE = re.compile(r"[0-9]{17}[0-9Xx]")

ID_CARD_WEIGHTS = (7, 9, 10, 5, 8, 4, 2, 1, 6, 3, 7, 9, 10, 5, 8, 4, 2)
ID_CARD_CHECK_CODES = "10X98765432"


LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1


# ASCII control characters and space. Unicode spaces such as U+3000 count as content.
TRIM_CHARS = "".join(chr(code) for code in range(0x21))
_NUMBER_RE = re.compile(
    r"[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?[fFdD]?)"
)


def parse_number(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    text = text.strip(TRIM_CHARS)
    if not _NUMBER_RE.fullmatch(text):
        return None
    return float(text.rstrip("fFdD"))


def parse_integer(text: Optional[str]) -> Optional[int]:
    # Signed 64-bit range only; anything wider is treated as non-numeric.
    if text is None or not _INTEGER_RE.fullmatch(text):
        return None
    number = int(text)
    if number < LONG_MIN or number > LONG_MAX:
        return None
    return number


def is_prime(value: Optional[str]) -> bool:
    num = parse_integer(value)
    if num is None or num <= 1:
        return False
    if num <= 3:
        return True
    if num % 2 == 0 or num % 3 == 0:
        return False
    i = 5
    while i * i <= num:
        if num % i == 0 or num % (i + 2) == 0:
            return False
        i += 6
    return True


def is_email(value: Optional[str]) -> bool:
    if not value:
        return False
    return EMAIL_RE.fullmatch(value) is not None


def is_phone(value: Optional[str]) -> bool:
    if not value:
        return False
    return bool(MOBILE_PHONE_RE.fullmatch(value) or INTERNATIONAL_PHONE_RE.fullmatch(value))


def is_url(value: Optional[str]) -> bool:
    if not value:
        return False
    return URL_RE.fullmatch(value) is not None


def id_card_check_code(digits: str) -> str:
    total = sum(int(char) * weight for char, weight in zip(digits, ID_CARD_WEIGHTS))
    return ID_CARD_CHECK_CODES[total % 11]


def is_id_card(value: Optional[str]) -> bool:
    if value is None or len(value) != 18:
        return False
    if not ID_CARD_RE.fullmatch(value):
        return False
    return value[17].upper() == id_card_check_code(value[:17])


@functools.lru_cache(maxsize=128)
def _compile(pattern: str) -> Optional[Pattern[str]]:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def _compare(value: Optional[str], parameter: Optional[str], op: Callable[[float, float], bool]) -> bool:
    num = parse_number(value)
    threshold = parse_number(parameter)
    if num is None or threshold is None:
        return False
    return op(num, threshold)


@evaluator(RuleType.NUMBER_GREATER)
def _number_greater(value: Optional[str], parameter: Optional[str]) -> bool:
    return _compare(value, parameter, lambda num, threshold: num > threshold)


@evaluator(RuleType.NUMBER_LESS)
def _number_less(value: Optional[str], parameter: Optional[str]) -> bool:
    return _compare(value, parameter, lambda num, threshold: num < threshold)


@evaluator(RuleType.NUMBER_EQUAL)
def _number_equal(value: Optional[str], parameter: Optional[str]) -> bool:
    return _compare(value, parameter, lambda num, threshold: abs(num - threshold) < 1e-4)


@evaluator(RuleType.NUMBER_PRIME)
def _number_prime(value: Optional[str], _: Optional[str]) -> bool:
    return is_prime(value)


@evaluator(RuleType.STRING_CONTAINS)
def _string_contains(value: Optional[str], parameter: Optional[str]) -> bool:
    if value is None or parameter is None:
        return False
    return parameter in value


@evaluator(RuleType.STRING_REGEX)
def _string_regex(value: Optional[str], parameter: Optional[str]) -> bool:
    if value is None or parameter is None:
        return False
    pattern = _compile(parameter)
    if pattern is None:
        return False
    return pattern.fullmatch(value) is not None


# Format rules flag the cells that FAIL validation.
@evaluator(RuleType.FORMAT_EMAIL)
def _format_email(value: Optional[str], _: Optional[str]) -> bool:
    return not is_email(value)


@evaluator(RuleType.FORMAT_PHONE)
def _format_phone(value: Optional[str], _: Optional[str]) -> bool:
    return not is_phone(value)


@evaluator(RuleType.FORMAT_URL)
def _format_url(value: Optional[str], _: Optional[str]) -> bool:
    return not is_url(value)


@evaluator(RuleType.FORMAT_ID_CARD)
def _format_id_card(value: Optional[str], _: Optional[str]) -> bool:
    return not is_id_card(value)


@evaluator(RuleType.EMPTY_NULL)
def _empty_null(value: Optional[str], _: Optional[str]) -> bool:
    return value is None or len(value) == 0


@evaluator(RuleType.EMPTY_WHITESPACE)
def _empty_whitespace(value: Optional[str], _: Optional[str]) -> bool:
    if not value:
        return False
    return value.strip(TRIM_CHARS) == ""


@evaluator(RuleType.EMPTY_ZERO_LENGTH)
def _empty_zero_length(value: Optional[str], _: Optional[str]) -> bool:
    return value is not None and len(value) == 0

