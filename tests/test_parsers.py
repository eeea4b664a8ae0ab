#
# Contio - Parsers Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
from dataclasses import dataclass

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest
from frozendict import frozendict

# Local ----------------------------------------------------------------------------------------------------------------
from contio.adapters import adapt
from contio.delimiters import DEFAULT_DELIMITERS, DelimiterConfig
from contio.errors import ParseError
from contio.formatters import fmt_any
from contio.parsers import (
    MAX_DEPTH,
    MalformedEscape,
    NestingTooDeep,
    ParseResult,
    TrailingSeparator,
    TypeMismatch,
    UnexpectedToken,
    UnterminatedContainer,
    UnterminatedString,
    loads,
    parse,
    to_python,
    try_parse,
)
from contio.values import (
    Kind,
    MappingValue,
    ScalarValue,
    SequenceValue,
    SetValue,
    TupleValue,
)

S = ScalarValue
STR = ScalarValue.string


@dataclass
class Reading:
    sensor: str
    values: list


# Tests ----------------------------------------------------------------------------------------------------------------

class TestParse:
    @pytest.mark.parametrize(
        "text, expected",
        [
            pytest.param("[1, 2, 3]", SequenceValue([S("1"), S("2"), S("3")]), id="sequence"),
            pytest.param("{1, 2}", SetValue([S("1"), S("2")]), id="set"),
            pytest.param("{'a': 1}", MappingValue([(STR("a"), S("1"))]), id="mapping"),
            pytest.param("(1, 'foo', true)", TupleValue([S("1"), STR("foo"), S("true")]), id="tuple"),
            pytest.param("[]", SequenceValue(), id="empty-sequence"),
            pytest.param("()", TupleValue(), id="empty-tuple"),
            pytest.param("{}", MappingValue(), id="empty-braces-mapping"),
            pytest.param("42", S("42"), id="bare-scalar"),
            pytest.param("'x'", STR("x"), id="string-scalar"),
            pytest.param("['']", SequenceValue([STR("")]), id="empty-string"),
            pytest.param("['it\\'s']", SequenceValue([STR("it's")]), id="escaped-delimiter"),
            pytest.param("['a\\\\b']", SequenceValue([STR("a\\b")]), id="escaped-backslash"),
            pytest.param("['a, b]']", SequenceValue([STR("a, b]")]), id="separators-inside-string"),
            pytest.param("[it's]", SequenceValue([S("it's")]), id="bare-with-quote-inside"),
            pytest.param("[12:30]", SequenceValue([S("12:30")]), id="bare-with-colon"),
            pytest.param("{a: 12:30}", MappingValue([(S("a"), S("12:30"))]), id="mapping-bare-colon"),
            pytest.param("[[], [[]]]", SequenceValue([SequenceValue(), SequenceValue([SequenceValue()])]),
                         id="nested-empty"),
            pytest.param("{{1}}", SetValue([SetValue([S("1")])]), id="set-of-set"),
            pytest.param("{(1, 2): [3]}", MappingValue([(TupleValue([S("1"), S("2")]), SequenceValue([S("3")]))]),
                         id="tuple-key"),
        ],
    )
    def test_default_config(self, text, expected):
        assert parse(text) == expected

    @pytest.mark.parametrize(
        "text",
        [
            pytest.param("[1,2]", id="tight"),
            pytest.param("[ 1 ,  2 ]", id="loose"),
            pytest.param("\n[1,\n 2]\n", id="newlines"),
        ],
    )
    def test_whitespace_lenient(self, text):
        assert parse(text) == SequenceValue([S("1"), S("2")])

    def test_bare_scalar_keeps_inner_whitespace(self):
        assert parse("[hello world , x]") == SequenceValue([S("hello world"), S("x")])

    def test_mapping_whitespace(self):
        assert parse("  { 'a' :1 }  ") == MappingValue([(STR("a"), S("1"))])

    def test_duplicate_keys_kept(self):
        value = parse("{'a': 1, 'a': 2}")
        assert value.keys() == (STR("a"), STR("a"))

    def test_not_a_str(self):
        with pytest.raises(TypeError, match="text must be str"):
            parse(b"[1]")


class TestRoundTrip:
    @pytest.mark.parametrize(
        "obj",
        [
            pytest.param([1, 2, 3], id="list"),
            pytest.param({"a": 1, "b": [True, None]}, id="dict"),
            pytest.param((1, "foo", True), id="tuple"),
            pytest.param({3, 1}, id="set"),
            pytest.param(["it's", "a\\b", "\\'", ""], id="escapes"),
            pytest.param({"k": [(1, {2}), {"n": ()}]}, id="nested"),
            pytest.param([Reading("t1", [1.5, 2.5])], id="dataclass"),
            pytest.param([[], {}, ()], id="empties"),
        ],
    )
    @pytest.mark.parametrize(
        "config",
        [
            pytest.param(DEFAULT_DELIMITERS, id="python"),
            pytest.param(DEFAULT_DELIMITERS.merge(set_brackets=("<", ">"), string_delimiter='"'), id="angle-sets"),
            pytest.param(DEFAULT_DELIMITERS.merge(value_separator=";", key_value_separator="="), id="custom-seps"),
        ],
    )
    def test_parse_inverts_format(self, obj, config):
        value = adapt(obj)
        assert parse(fmt_any(obj, config), config) == value

    def test_json_round_trip_with_expect(self, json_config):
        """Tuples render as arrays in JSON layout, expect restores the kind at the top level."""
        text = fmt_any((1, '"q"'), json_config)
        assert text == '[1, "\\"q\\""]'
        assert parse(text, json_config, expect=Kind.TUPLE) == TupleValue([S("1"), STR('"q"')])

    def test_custom_brackets(self):
        cfg = DelimiterConfig(
            sequence_brackets=("<", ">"),
            set_brackets=("<|", "|>"),
            mapping_brackets=("{", "}"),
            string_delimiter="`",
        )
        obj = [{1}, {"a": "`"}]
        assert fmt_any(obj, cfg) == "<<|1|>, {`a`: `\\``}>"
        assert parse(fmt_any(obj, cfg), cfg) == adapt(obj)

    def test_nested_empty_set_reads_as_mapping(self):
        """Default layout writes an empty set as {}, which reads back as an empty mapping."""
        text = fmt_any([set()])
        assert text == "[{}]"
        assert parse(text) == SequenceValue([MappingValue()])

    def test_top_level_empty_set_with_expect(self):
        assert parse(fmt_any(set()), expect=Kind.SET) == SetValue()

    def test_nested_empty_set_distinct_brackets(self):
        config = DEFAULT_DELIMITERS.merge(set_brackets=("<", ">"))
        text = fmt_any([set(), {"a": set()}], config)
        assert text == "[<>, {'a': <>}]"
        assert parse(text, config) == SequenceValue([SetValue(), MappingValue([(STR("a"), SetValue())])])

    def test_nested_empty_set_square_brackets(self):
        """Square-bracket sets never collide with mappings; they read back as sequences."""
        config = DelimiterConfig.brackets()
        text = fmt_any([set()], config)
        assert text == "[[]]"
        assert parse(text, config) == SequenceValue([SequenceValue()])
        assert parse(fmt_any(set(), config), config, expect=Kind.SET) == SetValue()


class TestParseErrors:
    @pytest.mark.parametrize(
        "text, exc, position",
        [
            pytest.param("['a\\nb']", MalformedEscape, 3, id="malformed-escape"),
            pytest.param("['abc]", UnterminatedString, 1, id="unterminated-string"),
            pytest.param("'abc\\", UnterminatedString, 0, id="dangling-backslash-string"),
            pytest.param("[1, 2", UnterminatedContainer, 5, id="missing-closer"),
            pytest.param("[", UnterminatedContainer, 1, id="lone-opener"),
            pytest.param("{'a': ", UnterminatedContainer, 6, id="missing-mapping-value"),
            pytest.param("[1, 2)", UnterminatedContainer, 5, id="wrong-closer"),
            pytest.param("{'a': 1]", UnterminatedContainer, 7, id="wrong-mapping-closer"),
            pytest.param("[1, 2]]", UnexpectedToken, 6, id="trailing-input"),
            pytest.param("[1: 2]", UnexpectedToken, 2, id="key-in-sequence"),
            pytest.param("{1: 2, 3}", UnexpectedToken, 8, id="missing-key-value-separator"),
            pytest.param("[, 1]", UnexpectedToken, 1, id="missing-value"),
            pytest.param("", UnexpectedToken, 0, id="empty-input"),
            pytest.param("   ", UnexpectedToken, 3, id="blank-input"),
            pytest.param("[1, 2, ]", TrailingSeparator, 7, id="trailing-separator"),
            pytest.param("{'a': 1,}", TrailingSeparator, 8, id="trailing-separator-mapping"),
        ],
    )
    def test_error(self, text, exc, position):
        with pytest.raises(exc) as exc_info:
            parse(text)
        assert exc_info.value.position == position
        assert f"at position {position}" in str(exc_info.value)

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            parse("[1")

    def test_trailing_separator_is_unexpected_token(self):
        with pytest.raises(UnexpectedToken):
            parse("[1, ]")

    @pytest.mark.parametrize(
        "text, expected",
        [
            pytest.param("[1, 2, ]", SequenceValue([S("1"), S("2")]), id="sequence"),
            pytest.param("{'a': 1, }", MappingValue([(STR("a"), S("1"))]), id="mapping"),
            pytest.param("(1,)", TupleValue([S("1")]), id="tuple"),
        ],
    )
    def test_allow_trailing_separator(self, text, expected):
        assert parse(text, allow_trailing_separator=True) == expected

    def test_allow_trailing_separator_still_needs_a_value(self):
        with pytest.raises(UnexpectedToken):
            parse("[,]", allow_trailing_separator=True)

    def test_error_message_names_opener(self):
        with pytest.raises(UnterminatedContainer, match=r"missing closing delimiter for '\[' opened at position 4"):
            parse("[1, [2")


class TestExpect:
    def test_matching_kind(self):
        assert parse("[1]", expect=Kind.SEQUENCE) == SequenceValue([S("1")])

    def test_empty_braces_as_set(self):
        assert parse("{}", expect=Kind.SET) == SetValue()

    def test_empty_braces_as_mapping(self):
        assert parse("{}", expect="mapping") == MappingValue()

    def test_shared_brackets_reinterpreted(self, json_config):
        assert parse("[1, 2]", json_config, expect=Kind.SET) == SetValue([S("1"), S("2")])

    @pytest.mark.parametrize(
        "text, expect",
        [
            pytest.param("[1]", Kind.SET, id="sequence-as-set"),
            pytest.param("(1)", Kind.SEQUENCE, id="tuple-as-sequence"),
            pytest.param("{1: 2}", Kind.SET, id="mapping-as-set"),
            pytest.param("{1}", Kind.MAPPING, id="set-as-mapping"),
            pytest.param("1", Kind.SEQUENCE, id="scalar-as-sequence"),
            pytest.param("[1]", Kind.SCALAR, id="sequence-as-scalar"),
        ],
    )
    def test_mismatch(self, text, expect):
        with pytest.raises(TypeMismatch, match=f"expected {expect.value}"):
            parse(text, expect=expect)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            parse("[1]", expect="queue")


class TestConfigErrors:
    @pytest.mark.parametrize(
        "cfg",
        [
            pytest.param(DEFAULT_DELIMITERS.merge(value_separator=" "), id="value-sep-blank"),
            pytest.param(DEFAULT_DELIMITERS.merge(key_value_separator="  "), id="kv-sep-blank"),
        ],
    )
    def test_whitespace_only_separator(self, cfg):
        with pytest.raises(ValueError, match="whitespace only"):
            parse("[1]", cfg)

    def test_separators_must_differ(self):
        cfg = DEFAULT_DELIMITERS.merge(key_value_separator=" , ")
        with pytest.raises(ValueError, match="must differ"):
            parse("[1]", cfg)

    def test_bad_config_type(self):
        with pytest.raises(TypeError, match="config must be a DelimiterConfig"):
            parse("[1]", "python")

    def test_config_errors_are_not_parse_errors(self):
        cfg = DEFAULT_DELIMITERS.merge(value_separator=" ")
        with pytest.raises(ValueError) as exc_info:
            try_parse("[1]", cfg)
        assert not isinstance(exc_info.value, ParseError)


class TestTryParse:
    def test_ok(self):
        result = try_parse("[1, 2]")
        assert result.ok
        assert result.error is None
        assert result.unwrap() == SequenceValue([S("1"), S("2")])

    def test_error(self):
        result = try_parse("[1, 2")
        assert not result.ok
        assert result.value is None
        assert isinstance(result.error, UnterminatedContainer)
        assert result.error.position == 5

    def test_unwrap_raises_stored_error(self):
        result = try_parse("{1}", expect=Kind.MAPPING)
        with pytest.raises(TypeMismatch):
            result.unwrap()

    def test_passes_options(self):
        assert try_parse("[1, ]", allow_trailing_separator=True).ok

    def test_result_is_frozen(self):
        with pytest.raises(AttributeError):
            ParseResult().value = S("1")

    def test_deep_nesting_is_an_error_value(self):
        result = try_parse("[" * 2000 + "]" * 2000)
        assert result.ok is False
        assert isinstance(result.error, NestingTooDeep)
        assert isinstance(result.error, ParseError)
        assert result.error.position == MAX_DEPTH


class TestNestingLimit:
    def test_default_limit_accepted(self):
        value = parse("[" * MAX_DEPTH + "]" * MAX_DEPTH)
        depth = 0
        while value.kind is Kind.SEQUENCE and len(value) == 1:
            value = value.items[0]
            depth += 1
        assert depth == MAX_DEPTH - 1
        assert value == SequenceValue()

    def test_beyond_default_limit(self):
        with pytest.raises(NestingTooDeep, match=f"deeper than {MAX_DEPTH} levels"):
            parse("[" * (MAX_DEPTH + 1) + "]" * (MAX_DEPTH + 1))

    def test_custom_limit(self):
        assert parse("[1]", max_depth=1) == SequenceValue([S("1")])
        with pytest.raises(NestingTooDeep) as exc_info:
            parse("[[1]]", max_depth=1)
        assert exc_info.value.position == 1

    def test_mixed_kinds_count(self):
        with pytest.raises(NestingTooDeep):
            parse("{'a': [(1)]}", max_depth=2)

    def test_zero_allows_scalars_only(self):
        assert parse("1", max_depth=0) == S("1")
        with pytest.raises(NestingTooDeep):
            parse("[]", max_depth=0)

    def test_loads_forwards_limit(self):
        with pytest.raises(NestingTooDeep):
            loads("[[1]]", max_depth=1)

    @pytest.mark.parametrize(
        "max_depth, exc, match",
        [
            pytest.param(-1, ValueError, "non-negative", id="negative"),
            pytest.param(2.0, TypeError, "max_depth must be int", id="float"),
            pytest.param(True, TypeError, "max_depth must be int", id="bool"),
        ],
    )
    def test_invalid(self, max_depth, exc, match):
        with pytest.raises(exc, match=match):
            parse("[1]", max_depth=max_depth)


class TestLoads:
    @pytest.mark.parametrize(
        "text, expected",
        [
            pytest.param("{'a': [1, 2.5, true, None]}", {"a": [1, 2.5, True, None]}, id="mixed"),
            pytest.param("(1, 'foo', false)", (1, "foo", False), id="tuple"),
            pytest.param("[True, False, null]", [True, False, None], id="word-variants"),
            pytest.param("['1', 1]", ["1", 1], id="string-stays-string"),
            pytest.param("[1e3, -7, abc]", [1000.0, -7, "abc"], id="numbers-and-text"),
            pytest.param("[+3, .5, 2., -1E-2]", [3, 0.5, 2.0, -0.01], id="decimal-forms"),
            pytest.param("[1_000, nan, Infinity, inf]", ["1_000", "nan", "Infinity", "inf"], id="loose-numbers-text"),
            pytest.param("[١٢, 1e, .]", ["١٢", "1e", "."], id="not-ascii-decimal"),
            pytest.param("{1, 2}", {1, 2}, id="set"),
            pytest.param("{}", {}, id="empty-mapping"),
        ],
    )
    def test_loads(self, text, expected):
        assert loads(text) == expected

    def test_hashable_members(self):
        """Containers in keys and set members become their hashable counterparts."""
        result = loads("{[1, 2]: {3}, (4): {'k': [5]}}")
        assert result == {(1, 2): {3}, (4,): {"k": [5]}}

    def test_frozen_mapping_in_set(self):
        result = loads("{{'a': [1]}}")
        assert result == {frozendict(a=(1,))}
        member = next(iter(result))
        assert isinstance(member, frozendict)

    def test_set_in_set(self):
        assert loads("{{1}}") == {frozenset({1})}

    def test_expect_passed(self, json_config):
        assert loads("[1, 2]", json_config, expect=Kind.TUPLE) == (1, 2)

    def test_to_python_not_a_value(self):
        with pytest.raises(TypeError, match="value must be a Value"):
            to_python([1])

    def test_round_trip_native(self):
        obj = {"name": "it's", "tags": ["x", "y"], "pos": (1, 2), "ok": True}
        assert loads(fmt_any(obj)) == obj
