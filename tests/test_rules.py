import pytest

from markgrid.rules import (
    ApplyScope,
    AutoMarkRule,
    RuleCategory,
    RuleType,
    category_of,
    evaluate,
    id_card_check_code,
    is_id_card,
    is_prime,
    parse_integer,
    parse_number,
)

VALID_ID = "11010519491231002X"


def reference_prime(n: int) -> bool:
    if n < 2:
        return False
    return all(n % d for d in range(2, int(n ** 0.5) + 1))


def rule(rule_type, parameter=""):
    return AutoMarkRule(rule_type, parameter)


class TestNumbers:
    def test_prime_matches_reference(self):
        for n in range(-100, 10001):
            assert is_prime(str(n)) == reference_prime(n), n

    @pytest.mark.parametrize("value", ["", "abc", "7.0", " 7", "99999999999999999999"])
    def test_prime_rejects_non_integers(self, value):
        assert evaluate(rule(RuleType.NUMBER_PRIME), value) is False

    def test_parse_integer_range(self):
        assert parse_integer("9223372036854775807") == 2**63 - 1
        assert parse_integer("9223372036854775808") is None
        assert parse_integer("+5") == 5

    def test_comparisons(self):
        assert evaluate(rule(RuleType.NUMBER_GREATER, "10"), "10.5")
        assert not evaluate(rule(RuleType.NUMBER_GREATER, "10"), "10")
        assert evaluate(rule(RuleType.NUMBER_LESS, "0"), "-3")
        assert not evaluate(rule(RuleType.NUMBER_LESS, "abc"), "-3")

    def test_equal_uses_tolerance(self):
        assert evaluate(rule(RuleType.NUMBER_EQUAL, "1.5"), "1.50001")
        assert not evaluate(rule(RuleType.NUMBER_EQUAL, "1.5"), "1.501")

    def test_unparsable_cell_never_matches(self):
        assert not evaluate(rule(RuleType.NUMBER_GREATER, "0"), "n/a")
        assert not evaluate(rule(RuleType.NUMBER_GREATER, "0"), None)

    @pytest.mark.parametrize("value", ["١٢", "１２", "nan", "infinity", "1_000", "0x10", "　12"])
    def test_only_ascii_numbers_parse(self, value):
        assert parse_number(value) is None
        assert not evaluate(rule(RuleType.NUMBER_GREATER, "10"), value)

    def test_number_forms(self):
        assert parse_number(" 12 ") == 12.0
        assert parse_number("-.5") == -0.5
        assert parse_number("1e3") == 1000.0
        assert parse_number("2.5f") == 2.5
        assert parse_number("Infinity") == float("inf")
        nan = parse_number("NaN")
        assert nan is not None and nan != nan
        assert not evaluate(rule(RuleType.NUMBER_GREATER, "0"), "NaN")


class TestStrings:
    def test_contains_is_case_sensitive(self):
        assert evaluate(rule(RuleType.STRING_CONTAINS, "ab"), "xaby")
        assert not evaluate(rule(RuleType.STRING_CONTAINS, "AB"), "xaby")
        assert not evaluate(rule(RuleType.STRING_CONTAINS, "ab"), None)

    def test_regex_is_full_match(self):
        assert evaluate(rule(RuleType.STRING_REGEX, "[0-9]+"), "123")
        assert not evaluate(rule(RuleType.STRING_REGEX, "[0-9]+"), "a123")

    def test_invalid_regex_never_matches(self):
        assert evaluate(rule(RuleType.STRING_REGEX, "(unclosed"), "(unclosed") is False


class TestFormats:
    def test_id_card_checksum(self):
        assert id_card_check_code(VALID_ID[:17]) == "X"
        assert is_id_card(VALID_ID)
        assert is_id_card(VALID_ID.lower())

    def test_flipped_check_character_fails(self):
        assert not is_id_card(VALID_ID[:17] + "1")

    def test_id_card_rule_marks_invalid_values(self):
        id_rule = rule(RuleType.FORMAT_ID_CARD)
        assert not evaluate(id_rule, VALID_ID)
        assert evaluate(id_rule, VALID_ID[:17] + "1")
        assert evaluate(id_rule, "12345")

    @pytest.mark.parametrize(
        "rule_type, good, bad",
        [
            (RuleType.FORMAT_EMAIL, "user@example.com", "user@example"),
            (RuleType.FORMAT_PHONE, "13812345678", "12812345678"),
            (RuleType.FORMAT_PHONE, "+8613812345678", "+86"),
            (RuleType.FORMAT_URL, "https://example.com/path", "ftp://example.com"),
        ],
    )
    def test_format_rules_flag_failures(self, rule_type, good, bad):
        assert not evaluate(rule(rule_type), good)
        assert evaluate(rule(rule_type), bad)

    def test_empty_value_fails_format_validation(self):
        assert evaluate(rule(RuleType.FORMAT_EMAIL), "")


class TestEmpty:
    def test_null(self):
        assert evaluate(rule(RuleType.EMPTY_NULL), None)
        assert evaluate(rule(RuleType.EMPTY_NULL), "")
        assert not evaluate(rule(RuleType.EMPTY_NULL), " ")

    def test_whitespace(self):
        assert evaluate(rule(RuleType.EMPTY_WHITESPACE), " \t")
        assert not evaluate(rule(RuleType.EMPTY_WHITESPACE), "")
        assert not evaluate(rule(RuleType.EMPTY_WHITESPACE), None)
        assert not evaluate(rule(RuleType.EMPTY_WHITESPACE), "　")
        assert not evaluate(rule(RuleType.EMPTY_WHITESPACE), "\xa0")
        assert evaluate(rule(RuleType.EMPTY_WHITESPACE), "\r\n\x0b")

    def test_zero_length(self):
        assert evaluate(rule(RuleType.EMPTY_ZERO_LENGTH), "")
        assert not evaluate(rule(RuleType.EMPTY_ZERO_LENGTH), None)


class TestAutoMarkRule:
    def test_missing_rule_never_matches(self):
        assert evaluate(None, "anything") is False

    def test_category(self):
        assert category_of(RuleType.NUMBER_PRIME) is RuleCategory.NUMBER
        assert category_of(RuleType.FORMAT_ID_CARD) is RuleCategory.FORMAT
        assert category_of(RuleType.EMPTY_ZERO_LENGTH) is RuleCategory.EMPTY

    def test_scope(self):
        specified = AutoMarkRule(
            RuleType.EMPTY_NULL, scope=ApplyScope.SPECIFIED_COLUMNS, specified_columns=(1, 3)
        )
        assert specified.in_scope(3)
        assert not specified.in_scope(2)
        selected = AutoMarkRule(RuleType.EMPTY_NULL, scope=ApplyScope.SELECTED_COLUMN)
        assert selected.in_scope(5)
        assert selected.in_scope(2, selected_column=2)
        assert not selected.in_scope(1, selected_column=2)

    def test_dict_round_trip(self):
        original = AutoMarkRule(
            RuleType.STRING_CONTAINS,
            "foo",
            color="#123456",
            name="has foo",
            scope=ApplyScope.SPECIFIED_COLUMNS,
            specified_columns=(0, 2),
            enabled=False,
        )
        assert AutoMarkRule.from_dict(original.to_dict()) == original

    def test_from_dict_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            AutoMarkRule.from_dict({"type": "number_huge"})

    def test_str_falls_back_to_label(self):
        assert str(rule(RuleType.NUMBER_PRIME)) == "Prime number"
